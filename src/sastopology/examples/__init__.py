from __future__ import print_function

DEFAULT_CONFIG_PATH = "/etc/sastopology.yaml"


def _parse_arguments(argv):
    from argparse import ArgumentParser
    parser = ArgumentParser(description="Discover host's SAS Topology")
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="YAML configuration file")
    parser.add_argument("-s", "--summary", dest="summary", action="store_true", default=True,
                        help="show summary of SAS devices (default)")
    parser.add_argument("--no-summary", dest="summary", action="store_false")
    parser.add_argument("-m", "--mismatch", action="store_true", default=False,
                        help="show devices with path count mismatch")
    parser.add_argument("-p", "--pathcount", type=int, default=None,
                        help="number of expected paths to each SAS device")
    parser.add_argument("--sysfs-match-path-encl", type=int, default=None,
                        help="number of sysfs path elements a device shares with its enclosure")
    parser.add_argument("-v", "--verbose", action="store_true", default=False)
    return parser.parse_args(argv)


def print_mismatches(topology, expected_path_count):
    for device in topology.get_devices_with_path_count_mismatch(expected_path_count):
        logical_unit = topology.get_logical_unit(device)
        path_count = 0 if logical_unit is None else logical_unit.get_path_count()
        print("Path Count Mismatch: {!r} ({}), found {} paths".format(device.serial, device.id, path_count))


def _format_path(topology, device):
    hba = topology.get_hba(device)
    if hba is None:
        return "HBA: -, Port: {}".format(device.port_id)
    port = hba.get_port(device.port_id)
    phy_ids = ",".join(port.get_phy_ids()) if port is not None else ""
    return "HBA: {}, Slot: {}, Port: {}, Phy IDs: {}".format(hba.pci_id, hba.slot, device.port_id, phy_ids)


def print_summary(topology):
    print("Found {} SAS Devices".format(len(topology.devices)))
    print("Found {} Unique Multi-pathed SAS Devices".format(len(topology.logical_units)))
    for pci_id in sorted(topology.hbas):
        hba = topology.hbas[pci_id]
        print("Found HBA: {}, Slot: {}, Host: {}".format(hba.pci_id, hba.slot, hba.host))

    print("Found {} Enclosures".format(len(topology.enclosures)))
    for enclosure_id in sorted(topology.enclosures):
        enclosure = topology.enclosures[enclosure_id]
        print("Enclosure:\n    Vendor: {}, Model: {}, Serial: {}".format(enclosure.vendor, enclosure.model,
                                                                          enclosure.serial))
        print("    Paths:")
        for device in topology.get_paths(topology.logical_units[enclosure.logical_unit_id]):
            print("        {}".format(_format_path(topology, device)))
        print("    {} Slots populated".format(len(enclosure.slots)))
        for slot in enclosure.get_populated_slots():
            logical_unit = topology.logical_units[enclosure.slots[slot]]
            print("    Slot: {}".format(slot))
            print("        Vendor: {}, Model: {}, Serial: {}".format(logical_unit.vendor, logical_unit.model,
                                                                     logical_unit.serial))
            print("        Paths:")
            for device in topology.get_paths(logical_unit):
                hba = topology.get_hba(device)
                print("            HBA: {}, HCTL: {}, SG: {}, Device: {}".format(
                    hba.slot if hba is not None else "-", device.get_hctl(), device.scsi_generic_device_name,
                    device.block_device_name))


def discover(argv=None):
    """Entry point of the sastopo-discover command"""
    import logging
    from .. import get_topology
    from ..config import load_conf
    from ..errors import ConfigurationError

    arguments = _parse_arguments(argv)
    logging.basicConfig(level=logging.DEBUG if arguments.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        conf = load_conf(arguments.config)
    except ConfigurationError as error:
        logging.getLogger(__name__).error("{}".format(error))
        return 1
    if arguments.pathcount is not None:
        conf = conf._replace(expected_path_count=arguments.pathcount)
    if arguments.sysfs_match_path_encl is not None:
        conf = conf._replace(path_prefix_match_depth=arguments.sysfs_match_path_encl)

    topology = get_topology(conf)
    if arguments.mismatch:
        print_mismatches(topology, conf.expected_path_count)
    if arguments.summary:
        print_summary(topology)
    return 0
