from infi.pyutils.lazy import cached_method
from infi.dtypes.hctl import HCTL

SCSI_TYPE_DISK = 0x00
SCSI_TYPE_ENCLOSURE = 0x0D

SCSI_TYPE_NAMES = {
    SCSI_TYPE_DISK: "disk",
    SCSI_TYPE_ENCLOSURE: "enclosure",
}

UNKNOWN_DEVICE_TYPE = -1


class Device(object):
    """A SCSI device as seen through a single I/O path.

    Relations to other entities are kept as keys into the tables of `sastopology.topology.Topology`:
    `logical_unit_id`, `hba_id` and `enclosure_id`."""

    def __init__(self, device_id, sysfs_path):
        super(Device, self).__init__()
        self.id = device_id
        self.sysfs_path = sysfs_path
        self.device_type = UNKNOWN_DEVICE_TYPE
        self.vendor = ''
        self.model = ''
        self.revision = ''
        self.sas_address = ''
        self.serial = ''
        self.block_device_name = None
        self.scsi_generic_device_name = None
        self.slot = None
        self.port_id = None
        self.hba_id = None
        self.logical_unit_id = None
        self.enclosure_id = None

    @cached_method
    def get_hctl(self):
        return HCTL.from_string(self.id)

    def get_path_segments(self):
        return self.sysfs_path.split("/")

    def get_scsi_access_path(self):
        """Returns /dev/sgX, or None if the device has no scsi_generic node"""
        if self.scsi_generic_device_name is None:
            return None
        return "/dev/{}".format(self.scsi_generic_device_name)

    def get_block_access_path(self):
        if self.block_device_name is None:
            return None
        return "/dev/{}".format(self.block_device_name)

    def is_disk(self):
        return self.device_type == SCSI_TYPE_DISK

    def is_enclosure(self):
        return self.device_type == SCSI_TYPE_ENCLOSURE

    def get_display_name(self):
        return self.block_device_name or self.scsi_generic_device_name or self.id

    def __repr__(self):
        _repr = "<{}(id={!r}, type={!r}, serial={!r}, sas_address={!r})>"
        return _repr.format(self.__class__.__name__, self.id, SCSI_TYPE_NAMES.get(self.device_type, self.device_type),
                            self.serial, self.sas_address)
