from logging import getLogger

logger = getLogger(__name__)


class LogicalUnit(object):
    """A physical unit (disk or enclosure) reachable through one or more device paths.

    `id` is the serial number, or the SAS address for units without one; `paths` are the ids of the member devices."""

    def __init__(self, unit_id, paths, serial='', vendor='', model=''):
        super(LogicalUnit, self).__init__()
        self.id = unit_id
        self.paths = paths
        self.serial = serial
        self.vendor = vendor
        self.model = model

    def get_path_count(self):
        return len(self.paths)

    def __repr__(self):
        return "<{}(id={!r}, paths={!r})>".format(self.__class__.__name__, self.id, self.paths)


def group_devices_by(devices, attribute):
    """Returns {value: [device, ...]} for the non-empty values of the attribute"""
    groups = dict()
    for device in devices:
        value = getattr(device, attribute)
        if value:
            groups.setdefault(value, []).append(device)
    return groups


class MultipathMerger(object):
    """Groups devices that are paths to the same physical unit.

    Devices sharing a serial number are one unit. A device without a serial number joins the devices sharing its
    SAS address: the unit of a serial number found among them, or a unit keyed by the SAS address."""

    def get_identity_key(self, device, devices_by_serial, devices_by_sas_address):
        """Returns the key of the unit of the device, or None for orphans"""
        if device.serial and device.serial in devices_by_serial:
            return device.serial
        if device.sas_address and device.sas_address in devices_by_sas_address:
            serials = sorted(set(sibling.serial for sibling in devices_by_sas_address[device.sas_address]
                                 if sibling.serial))
            if serials:
                return serials[0]
            return device.sas_address
        return None

    def merge(self, devices, devices_by_serial, devices_by_sas_address):
        """Sets `logical_unit_id` of every device and returns {key: LogicalUnit}; orphans are left out"""
        members = dict()
        for device in devices.values():
            key = self.get_identity_key(device, devices_by_serial, devices_by_sas_address)
            device.logical_unit_id = key
            if key is None:
                logger.warning("device {} has no serial number nor SAS address, it is not part of any unit".format(
                    device.id))
                continue
            members.setdefault(key, []).append(device)

        logical_units = dict()
        for key, paths in members.items():
            first = paths[0]
            serial = next((device.serial for device in paths if device.serial), '')
            logical_units[key] = LogicalUnit(key, [device.id for device in paths], serial, first.vendor, first.model)
            logger.debug("unit {} has {} path(s): {!r}".format(key, len(paths), logical_units[key].paths))
        return logical_units
