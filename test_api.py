import unittest
from fastapi.testclient import TestClient
from pediaflow_iwl.main import app
from pediaflow_iwl.constants import VERSION

class TestIWLApi(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)
        self.patient = {
            'height_cm': 77.0,
            'weight_kg': 8.5,
            'temp_celsius': 39.0,
            'respiratory_rate_bpm': 55,
            'risk_factors': ['phototherapy', 'burns'],
        }

    def test_01_health(self):
        res = self.client.get("/health")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["version"], VERSION)

    def test_02_full_estimate(self):
        print("\nAPI TEST 2: Full estimate")
        res = self.client.post("/calculate", json=self.patient)
        self.assertEqual(res.status_code, 200)
        body = res.json()
        print(f"  > {body['human_readable_summary']}")

        self.assertTrue(body["available"])
        result = body["result"]
        self.assertAlmostEqual(result["fever_adjustment_fraction"], 0.26)
        self.assertAlmostEqual(result["respiratory_adjustment_ml"], 255.0)
        self.assertAlmostEqual(result["risk_factor_adjustment_ml"], 0.7 * result["base_iwl_range"][0])
        self.assertEqual(result["applied_rr_band"]["age_label"], "3-6 months")
        self.assertEqual(len(body["adjustments"]), 3)
        self.assertEqual(len(body["clinical_notes"]), 4)
        self.assertAlmostEqual(result["hourly_rate_range"][1], result["adjusted_iwl_range"][1] / 24)

    def test_03_missing_weight_gives_placeholder(self):
        data = dict(self.patient)
        del data['weight_kg']
        res = self.client.post("/calculate", json=data)
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertFalse(body["available"])
        self.assertIsNone(body["result"])
        self.assertIn("height and weight", body["message"])

    def test_04_schema_guardrails(self):
        for field, value in [('weight_kg', 0), ('height_cm', -10), ('respiratory_rate_bpm', -1)]:
            data = dict(self.patient)
            data[field] = value
            res = self.client.post("/calculate", json=data)
            self.assertEqual(res.status_code, 422, field)

        data = dict(self.patient)
        data['risk_factors'] = ['sunburn']
        self.assertEqual(self.client.post("/calculate", json=data).status_code, 422)

    def test_06_blank_or_unreadable_height_gives_placeholder(self):
        print("\nAPI TEST 6: Form values as typed")
        for value in ("", "   ", "abc", None):
            data = dict(self.patient)
            data['height_cm'] = value
            res = self.client.post("/calculate", json=data)
            self.assertEqual(res.status_code, 200, value)
            body = res.json()
            self.assertFalse(body["available"])
            self.assertIsNone(body["result"])
        self.assertEqual(body["unparsed_values"], [])

        data = dict(self.patient)
        data['height_cm'] = "abc"
        body = self.client.post("/calculate", json=data).json()
        self.assertEqual(body["unparsed_values"], ["height_cm"])

    def test_07_blank_temperature_defaults_to_baseline(self):
        for value in ("", None):
            data = dict(self.patient)
            data['temp_celsius'] = value
            res = self.client.post("/calculate", json=data)
            self.assertEqual(res.status_code, 200, value)
            body = res.json()
            self.assertTrue(body["available"])
            self.assertEqual(body["result"]["fever_adjustment_fraction"], 0.0)
            self.assertIn("temp_celsius", body["defaulted_fields"])

        data = dict(self.patient)
        data['respiratory_rate_bpm'] = ""
        body = self.client.post("/calculate", json=data).json()
        self.assertEqual(body["result"]["respiratory_adjustment_ml"], 0.0)
        self.assertEqual(body["defaulted_fields"], ["respiratory_rate_bpm"])

    def test_08_numeric_strings_keep_the_limits(self):
        data = dict(self.patient)
        data.update({'height_cm': "77", 'weight_kg': "8.5", 'temp_celsius': "39"})
        body = self.client.post("/calculate", json=data).json()
        self.assertTrue(body["available"])
        self.assertAlmostEqual(body["result"]["fever_adjustment_fraction"], 0.26)

        for field, value in [('weight_kg', "0"), ('height_cm', "300"), ('temp_celsius', "50")]:
            data = dict(self.patient)
            data[field] = value
            self.assertEqual(self.client.post("/calculate", json=data).status_code, 422, field)

    def test_09_respiratory_band_lookup(self):
        res = self.client.get("/respiratory-band", params={"weight_kg": 15})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["description"], "Normal range for 1-3 years: 20-30 breaths/min")

if __name__ == '__main__':
    unittest.main()
