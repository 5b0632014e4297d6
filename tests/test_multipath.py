from unittest import TestCase
from sastopology.device import Device
from sastopology.multipath import MultipathMerger, group_devices_by


def create_device(device_id, serial='', sas_address='', vendor='SEAGATE', model='ST4000NM0023'):
    device = Device(device_id, "/sys/devices/{}".format(device_id))
    device.device_type = 0
    device.serial = serial
    device.sas_address = sas_address
    device.vendor = vendor
    device.model = model
    return device


class MultipathMergerTestCase(TestCase):
    def _merge(self, *devices):
        devices = dict((device.id, device) for device in devices)
        by_serial = group_devices_by(devices.values(), "serial")
        by_sas_address = group_devices_by(devices.values(), "sas_address")
        return devices, MultipathMerger().merge(devices, by_serial, by_sas_address)

    def test_group_devices_by_skips_empty_values(self):
        devices = [create_device("1:0:0:0", serial="SN1"), create_device("2:0:0:0")]
        self.assertEqual({"SN1": [devices[0]]}, group_devices_by(devices, "serial"))

    def test_merge_by_serial(self):
        devices, units = self._merge(create_device("1:0:0:0", "SN123", "0x5000c500a1b2c3d5"),
                                     create_device("2:0:0:0", "SN123", "0x5000c500a1b2c3d6"),
                                     create_device("1:0:1:0", "SN456", "0x5000c500a1b2c3e1"))
        self.assertEqual(["SN123", "SN456"], sorted(units))
        self.assertEqual(["1:0:0:0", "2:0:0:0"], units["SN123"].paths)
        self.assertEqual(2, units["SN123"].get_path_count())
        self.assertEqual("SN123", devices["2:0:0:0"].logical_unit_id)
        self.assertEqual("SEAGATE", units["SN123"].vendor)

    def test_merge_by_sas_address(self):
        devices, units = self._merge(create_device("1:0:12:0", sas_address="0x500093d0000b0a3e"),
                                     create_device("2:0:12:0", sas_address="0x500093d0000b0a3e"))
        self.assertEqual(["0x500093d0000b0a3e"], list(units))
        self.assertEqual(["1:0:12:0", "2:0:12:0"], units["0x500093d0000b0a3e"].paths)
        self.assertEqual("", units["0x500093d0000b0a3e"].serial)

    def test_serialless_device_joins_unit_of_sas_sibling(self):
        devices, units = self._merge(create_device("1:0:12:0", "ENCL1", "0x500093d0000b0a3e"),
                                     create_device("2:0:12:0", "", "0x500093d0000b0a3e"))
        self.assertEqual(["ENCL1"], list(units))
        self.assertEqual(["1:0:12:0", "2:0:12:0"], units["ENCL1"].paths)
        self.assertEqual("ENCL1", devices["2:0:12:0"].logical_unit_id)

    def test_serial_of_unit_comes_from_any_path(self):
        devices, units = self._merge(create_device("1:0:12:0", "", "0x500093d0000b0a3e"),
                                     create_device("2:0:12:0", "ENCL1", "0x500093d0000b0a3e"))
        self.assertEqual("ENCL1", units["ENCL1"].serial)
        self.assertEqual(["1:0:12:0", "2:0:12:0"], units["ENCL1"].paths)

    def test_orphan(self):
        with self.assertLogs("sastopology.multipath", level="WARNING"):
            devices, units = self._merge(create_device("1:0:0:0", "SN123"), create_device("1:0:5:0"))
        self.assertEqual(["SN123"], list(units))
        self.assertIsNone(devices["1:0:5:0"].logical_unit_id)

    def test_every_path_in_exactly_one_unit(self):
        devices, units = self._merge(create_device("1:0:0:0", "SN1", "0xa"),
                                     create_device("2:0:0:0", "SN1", "0xb"),
                                     create_device("1:0:1:0", "", "0xc"),
                                     create_device("2:0:1:0", "", "0xc"),
                                     create_device("1:0:2:0", "SN2", ""))
        paths = [path for unit in units.values() for path in unit.paths]
        self.assertEqual(sorted(devices), sorted(paths))
        for unit in units.values():
            for path in unit.paths:
                self.assertEqual(unit.id, devices[path].logical_unit_id)
