from threading import Thread
from time import sleep
from unittest import TestCase
from sastopology.hba import HBAGraphBuilder
from fake_sysfs import SysfsBuilder, FakeSysfs, get_end_device_path, get_host_path


class HBAGraphBuilderTestCase(TestCase):
    def setUp(self):
        self.builder = SysfsBuilder()
        self.builder.add_hba("0000:11:00.0", "host1", {
            "port-1:0": [("0", "0x500605b000000001"), ("1", "0x500605b000000001")],
            "port-1:1": [("4", "0x500605b000000001"), (None, None)],
        })
        self.builder.add_hba("0000:8b:00.0", "host2", {"port-2:0": [("0", "0x500605b000000002")]})
        self.hba_builder = HBAGraphBuilder(self.builder.sysfs, {"0000:11:00.0": "C3"})

    def _get_segments(self, pci_id, host, port, target=0):
        return get_end_device_path(pci_id, host, port, target).split("/")

    def test_one_hba_per_pci_id(self):
        first = self.hba_builder.get_or_create_hba(self._get_segments("0000:11:00.0", "host1", "port-1:0", 0))
        second = self.hba_builder.get_or_create_hba(self._get_segments("0000:11:00.0", "host1", "port-1:1", 3))
        other = self.hba_builder.get_or_create_hba(self._get_segments("0000:8b:00.0", "host2", "port-2:0", 0))
        self.assertIs(first, second)
        self.assertIsNot(first, other)
        self.assertEqual(["0000:11:00.0", "0000:8b:00.0"], sorted(self.hba_builder.hbas))

    def test_ports_and_phys(self):
        hba = self.hba_builder.get_or_create_hba(self._get_segments("0000:11:00.0", "host1", "port-1:0"))
        self.assertEqual("host1", hba.host)
        self.assertEqual(["port-1:0", "port-1:1"], sorted(hba.ports))
        self.assertEqual(["0", "1"], hba.get_port("port-1:0").get_phy_ids())
        self.assertEqual("0x500605b000000001", hba.get_port("port-1:0").phys[0].sas_address)
        self.assertEqual(["0", "1", "4"], hba.get_phy_ids())

    def test_phy_without_attributes_is_left_out(self):
        hba = self.hba_builder.get_or_create_hba(self._get_segments("0000:11:00.0", "host1", "port-1:1"))
        self.assertEqual(["4"], hba.get_port("port-1:1").get_phy_ids())

    def test_labels(self):
        labeled = self.hba_builder.get_or_create_hba(self._get_segments("0000:11:00.0", "host1", "port-1:0"))
        unlabeled = self.hba_builder.get_or_create_hba(self._get_segments("0000:8b:00.0", "host2", "port-2:0"))
        self.assertEqual("C3", labeled.slot)
        self.assertEqual("", unlabeled.slot)

    def test_unknown_port(self):
        hba = self.hba_builder.get_or_create_hba(self._get_segments("0000:11:00.0", "host1", "port-1:0"))
        self.assertIsNone(hba.get_port("port-1:7"))

    def test_unlistable_host(self):
        segments = self._get_segments("0000:5e:00.0", "host7", "port-7:0")
        with self.assertLogs("sastopology.hba", level="WARNING"):
            hba = self.hba_builder.get_or_create_hba(segments)
        self.assertEqual({}, hba.ports)


class CountingSysfs(FakeSysfs):
    """Slows down and counts the listings of a host node, so racing callers overlap"""

    def __init__(self, sysfs, host_path):
        super(CountingSysfs, self).__init__(sysfs.files, sysfs.links)
        self.host_path = host_path
        self.host_listings = 0

    def list_children(self, path):
        if path == self.host_path:
            self.host_listings += 1
            sleep(0.05)
        return super(CountingSysfs, self).list_children(path)


class HBAGraphBuilderConcurrencyTestCase(TestCase):
    def test_concurrent_callers_share_one_hba(self):
        builder = SysfsBuilder().add_hba("0000:11:00.0", "host1", {"port-1:0": [("0", "0x500605b000000001")]})
        source = CountingSysfs(builder.sysfs, get_host_path("0000:11:00.0", "host1"))
        hba_builder = HBAGraphBuilder(source)
        segments = get_end_device_path("0000:11:00.0", "host1", "port-1:0", 0).split("/")
        results = []

        def create():
            results.append(hba_builder.get_or_create_hba(segments))

        threads = [Thread(target=create) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(8, len(results))
        self.assertEqual(["0000:11:00.0"], list(hba_builder.hbas))
        self.assertTrue(all(hba is results[0] for hba in results))
        self.assertEqual(1, source.host_listings)
        self.assertEqual(["0"], results[0].get_phy_ids())
