import os
import shutil
import tempfile
from unittest import TestCase
from sastopology.config import Conf, conf_from_dict, load_conf
from sastopology.errors import ConfigurationError
from sastopology.ses import SES_SERIAL_LOCATIONS, SesSerialLocation


class ConfTestCase(TestCase):
    def test_defaults(self):
        conf = Conf()
        self.assertEqual(2, conf.expected_path_count)
        self.assertEqual(8, conf.path_prefix_match_depth)
        self.assertEqual({}, conf.hba_labels)
        self.assertEqual(SES_SERIAL_LOCATIONS, conf.ses_serial_models)
        self.assertEqual(30, conf.ses_timeout)

    def test_from_dict(self):
        conf = conf_from_dict({
            "expected_path_count": 4,
            "path_prefix_match_depth": "9",
            "hba_labels": {"0000:11:00.0": "C3", "0000:8b:00.0": None},
            "ses_serial_models": {"D3284": {"offset": 100, "length": 20}},
            "ses_timeout": 10,
        })
        self.assertEqual(4, conf.expected_path_count)
        self.assertEqual(9, conf.path_prefix_match_depth)
        self.assertEqual({"0000:11:00.0": "C3", "0000:8b:00.0": ""}, conf.hba_labels)
        self.assertEqual(SesSerialLocation(offset=100, length=20), conf.ses_serial_models["D3284"])
        self.assertEqual(SES_SERIAL_LOCATIONS["SA4600"], conf.ses_serial_models["SA4600"])
        self.assertEqual(10, conf.ses_timeout)

    def test_hba_labels_alias(self):
        conf = conf_from_dict({"HBALabels": {"0000:11:00.0": "C3"}})
        self.assertEqual({"0000:11:00.0": "C3"}, conf.hba_labels)

    def test_invalid(self):
        with self.assertRaises(ConfigurationError):
            conf_from_dict(["hba_labels"])
        with self.assertRaises(ConfigurationError):
            conf_from_dict({"expected_path_count": "two"})
        with self.assertRaises(ConfigurationError):
            conf_from_dict({"ses_serial_models": {"SA4600": {"offset": 2068}}})
        with self.assertRaises(ConfigurationError):
            conf_from_dict({"hba_labels": ["C3"]})


class LoadConfTestCase(TestCase):
    def setUp(self):
        self.directory = tempfile.mkdtemp()
        self.path = os.path.join(self.directory, "sastopology.yaml")

    def tearDown(self):
        shutil.rmtree(self.directory)

    def _write(self, content):
        with open(self.path, "w") as fd:
            fd.write(content)

    def test_load(self):
        self._write("expected_path_count: 1\n"
                    "HBALabels:\n"
                    "  \"0000:11:00.0\": C3\n"
                    "ses_serial_models:\n"
                    "  5U84: {offset: 2327, length: 10, page: 7}\n")
        conf = load_conf(self.path)
        self.assertEqual(1, conf.expected_path_count)
        self.assertEqual({"0000:11:00.0": "C3"}, conf.hba_labels)
        self.assertEqual(SesSerialLocation(offset=2327, length=10), conf.ses_serial_models["5U84"])

    def test_missing_file(self):
        with self.assertLogs("sastopology.config", level="WARNING"):
            conf = load_conf(self.path)
        self.assertEqual(Conf(), conf)

    def test_empty_file(self):
        self._write("")
        self.assertEqual(Conf(), load_conf(self.path))

    def test_invalid_yaml(self):
        self._write("hba_labels: [unclosed\n")
        with self.assertRaises(ConfigurationError):
            load_conf(self.path)
