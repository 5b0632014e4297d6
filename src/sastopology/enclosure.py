from logging import getLogger

logger = getLogger(__name__)

DEFAULT_PATH_PREFIX_MATCH_DEPTH = 8


class Enclosure(object):
    """A physical enclosure chassis; `slots` maps a slot number to the id of the unit (disk) in it"""

    def __init__(self, logical_unit):
        super(Enclosure, self).__init__()
        self.id = logical_unit.id
        self.logical_unit_id = logical_unit.id
        self.serial = logical_unit.serial
        self.vendor = logical_unit.vendor
        self.model = logical_unit.model
        self.slots = dict()

    def get_populated_slots(self):
        return sorted(self.slots)

    def __repr__(self):
        return "<{}(id={!r}, model={!r}, slots={!r})>".format(self.__class__.__name__, self.id, self.model,
                                                             self.get_populated_slots())


def get_path_prefix(device, depth):
    return "/".join(device.get_path_segments()[:depth])


class EnclosureAssigner(object):
    """Assigns devices to enclosures by comparing the first `depth` elements of their sysfs paths.

    An enclosure's path matches the paths of its devices up to the HBA port or the first expander:

        /sys/devices/pci0000:80/0000:80:03.0/0000:90:00.0/host2/port-2:0/expander-2:0
    """

    def __init__(self, depth=DEFAULT_PATH_PREFIX_MATCH_DEPTH):
        super(EnclosureAssigner, self).__init__()
        self.depth = depth

    def get_enclosures(self, enclosure_devices, logical_units):
        enclosures = dict()
        for device in enclosure_devices:
            if device.logical_unit_id is None:
                logger.warning("enclosure device {} is not part of any unit, skipping it".format(device.id))
                continue
            if device.logical_unit_id not in enclosures:
                enclosures[device.logical_unit_id] = Enclosure(logical_units[device.logical_unit_id])
        return enclosures

    def assign(self, devices, enclosure_devices, logical_units):
        """Returns {id: Enclosure} and sets `enclosure_id` of the devices and the slots of the enclosures"""
        enclosures = self.get_enclosures(enclosure_devices, logical_units)
        enclosures_by_prefix = dict()
        for device in enclosure_devices:
            if device.logical_unit_id in enclosures:
                enclosures_by_prefix[get_path_prefix(device, self.depth)] = enclosures[device.logical_unit_id]

        for device in devices.values():
            enclosure = enclosures_by_prefix.get(get_path_prefix(device, self.depth))
            if enclosure is None:
                continue
            device.enclosure_id = enclosure.id
            if device.is_disk() and device.slot is not None and device.logical_unit_id is not None:
                enclosure.slots[device.slot] = device.logical_unit_id
        return enclosures
