"""
PlanIt: a local events API for organizations, venues, and the people who
follow them.
"""
