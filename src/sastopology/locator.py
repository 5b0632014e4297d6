import re
from .errors import MalformedPathError, AttributeReadError
from .hba import PORT_SEGMENT
from logging import getLogger

logger = getLogger(__name__)

MINIMUM_PATH_SEGMENTS = PORT_SEGMENT + 1
END_DEVICE_LEVELS_UP = 2
ENCLOSURE_DEVICE_PREFIX = "enclosure_device:"

_TRAILING_NUMBER = re.compile(r"(\d+)\s*$")


class SlotStrategy(object):
    name = None

    def get_slot(self, source, device):  # pragma: no cover
        """Returns the slot number, or None if this strategy does not apply to the device"""
        raise NotImplementedError()

    def __repr__(self):
        return "<{}>".format(self.__class__.__name__)


class BayIdentifierSlotStrategy(SlotStrategy):
    """Newer kernels expose bay_identifier on the sas_device of the disk's end device:
    .../end_device-2:0:0/sas_device/end_device-2:0:0/bay_identifier"""
    name = "bay_identifier"

    def get_slot(self, source, device):
        segments = device.get_path_segments()
        if len(segments) <= END_DEVICE_LEVELS_UP:
            return None
        end_device_segments = segments[:-END_DEVICE_LEVELS_UP]
        end_device_name = end_device_segments[-1]
        sas_device_path = "/".join(end_device_segments + ["sas_device", end_device_name])
        try:
            return source.read_int_attribute(sas_device_path, "bay_identifier")
        except AttributeReadError:
            return None


class EnclosureDeviceSlotStrategy(SlotStrategy):
    """Older kernels link the slot directly from the device: <device>/enclosure_device:Slot 1"""
    name = "enclosure_device"

    def get_slot(self, source, device):
        try:
            children = source.list_children(device.sysfs_path)
        except AttributeReadError:
            return None
        links = [name for name in children if name.startswith(ENCLOSURE_DEVICE_PREFIX)]
        if not links:
            return None
        if len(links) > 1:
            logger.warning("found more than one enclosure_device for device {}, using {!r}".format(device.id, links[0]))
        return parse_enclosure_device_slot(links[0])


def parse_enclosure_device_slot(name):
    """Returns the slot number encoded in an enclosure_device link name, or None

        >>> parse_enclosure_device_slot("enclosure_device:Slot 03")
        3
    """
    _, _, slot_name = name.partition(":")
    match = _TRAILING_NUMBER.search(slot_name)
    if match is None:
        return None
    return int(match.group(1))


DEFAULT_SLOT_STRATEGIES = (BayIdentifierSlotStrategy(), EnclosureDeviceSlotStrategy())


class PathLocator(object):
    """Locates a device in the SAS topology from its sysfs path:

        /sys/devices/pci0000:80/0000:80:03.0/0000:90:00.0/host2/port-2:0/expander-2:0/port-2:0:0/end_device-2:0:0/...
                                            ^ HBA (5)     ^ host (6) ^ port (7)
    """

    def __init__(self, source, hba_builder, slot_strategies=DEFAULT_SLOT_STRATEGIES):
        super(PathLocator, self).__init__()
        self.source = source
        self.hba_builder = hba_builder
        self.slot_strategies = tuple(slot_strategies)

    def update_location(self, device):
        """Sets the HBA and port of the device. Raises `sastopology.errors.MalformedPathError`"""
        segments = device.get_path_segments()
        if len(segments) < MINIMUM_PATH_SEGMENTS:
            raise MalformedPathError(device.sysfs_path, MINIMUM_PATH_SEGMENTS)
        hba = self.hba_builder.get_or_create_hba(segments)
        device.hba_id = hba.pci_id
        device.port_id = segments[PORT_SEGMENT]

    def update_slot(self, device):
        """Sets the enclosure slot of a disk, using the first slot strategy that applies"""
        if not device.is_disk():
            return
        for strategy in self.slot_strategies:
            slot = strategy.get_slot(self.source, device)
            if slot is not None:
                logger.debug("slot of {} is {} (from {})".format(device.id, slot, strategy.name))
                device.slot = slot
                return
        logger.debug("no slot found for {}".format(device.id))
