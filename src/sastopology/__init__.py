'''

## Getting Started

To discover the SAS topology of the host:

    #!python
    from sastopology import get_topology
    topology = get_topology()

The discovery reads sysfs once and returns a `sastopology.topology.Topology` snapshot. Nothing is cached between
calls, so calling `get_topology` again after a cabling change returns the new topology.


### Devices and multipath

Every SCSI disk and enclosure seen through every I/O path is a `sastopology.device.Device`:

    #!python
    for device in topology.devices.values():
        print(device.id, device.serial, device.get_scsi_access_path())

Devices that are paths to the same physical disk or enclosure are grouped into a
`sastopology.multipath.LogicalUnit`, keyed by serial number (or by SAS address when there is no serial number):

    #!python
    unit = topology.get_logical_unit(device)
    paths = topology.get_paths(unit)

Finding units with a missing path:

    #!python
    mismatches = topology.get_devices_with_path_count_mismatch(2)


### Enclosures and slots

    #!python
    for enclosure in topology.enclosures.values():
        for slot in enclosure.get_populated_slots():
            unit = topology.logical_units[enclosure.slots[slot]]


### HBAs

    #!python
    hba = topology.get_hba(device)
    port = hba.get_port(device.port_id)
    port.get_phy_ids()


### Configuration

    #!python
    from sastopology.config import load_conf
    topology = get_topology(load_conf("/etc/sastopology.yaml"))

See `sastopology.config.conf_from_dict` for the file format.
'''

__all__ = ['get_topology']

def get_topology(conf=None):
    """returns a `sastopology.topology.Topology` of the host, discovered with the given `sastopology.config.Conf`"""
    from .topology import TopologyCoordinator
    return TopologyCoordinator(conf).discover()
