import unittest
from unittest.mock import MagicMock, patch

import requests

from planit.geocoding import GeocodeResult, GeocodingError, NominatimGeocoder, StaticGeocoder


class NominatimGeocoderTests(unittest.TestCase):
    def setUp(self):
        self.geocoder = NominatimGeocoder(url="https://geo.example.test/search", user_agent="PlanIt-Test/1.0")

    @patch("planit.geocoding.requests.get")
    def test_first_match(self, mock_get):
        mock_get.return_value = MagicMock(
            json=MagicMock(
                return_value=[
                    {"lat": "35.2145", "lon": "-80.829", "display_name": "Elizabeth Ave"},
                    {"lat": "0", "lon": "0", "display_name": "ignored"},
                ]
            )
        )
        result = self.geocoder.geocode("1425 Elizabeth Ave")
        self.assertEqual(result, GeocodeResult(lat=35.2145, lng=-80.829, display_name="Elizabeth Ave"))
        self.assertEqual(result.location, "POINT(-80.829 35.2145)")

        _, kwargs = mock_get.call_args
        self.assertEqual(kwargs["params"], {"q": "1425 Elizabeth Ave", "format": "json", "limit": 1})
        self.assertEqual(kwargs["headers"], {"User-Agent": "PlanIt-Test/1.0"})

    @patch("planit.geocoding.requests.get")
    def test_no_match(self, mock_get):
        mock_get.return_value = MagicMock(json=MagicMock(return_value=[]))
        self.assertIsNone(self.geocoder.geocode("Atlantis"))

    @patch("planit.geocoding.requests.get", side_effect=requests.Timeout("slow"))
    def test_transport_error(self, _mock_get):
        with self.assertRaises(GeocodingError):
            self.geocoder.geocode("anywhere")

    @patch("planit.geocoding.requests.get")
    def test_http_error(self, mock_get):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("503")
        mock_get.return_value = response
        with self.assertRaises(GeocodingError):
            self.geocoder.geocode("anywhere")


class StaticGeocoderTests(unittest.TestCase):
    def test_lookup_is_case_insensitive(self):
        geocoder = StaticGeocoder()
        geocoder.add("The Spot", GeocodeResult(lat=1.0, lng=2.0, display_name="Spot"))
        self.assertEqual(geocoder.geocode("  the spot ").lat, 1.0)
        self.assertIsNone(geocoder.geocode("elsewhere"))


if __name__ == "__main__":
    unittest.main()
