from infi.exceptools import chain
from .device import SCSI_TYPE_DISK, SCSI_TYPE_ENCLOSURE
from .errors import AttributeReadError, AttributeNotFoundError, SerialResolutionError, UnknownDeviceTypeError
from .ses import SES_SERIAL_LOCATIONS, SesPageReader, decode_hex_dump, extract_serial, trim_serial
from logging import getLogger

logger = getLogger(__name__)

VPD_PAGE_80_SERIAL_OFFSET = 4
VPD_PAGE_80_MAX_SERIAL_LENGTH = 128
SG_TIMEOUT_IN_MS = 3000


def get_serial_from_vpd_page_80(buffer):
    """Returns the unit serial number out of a raw VPD page 0x80 buffer"""
    return trim_serial(buffer[VPD_PAGE_80_SERIAL_OFFSET:VPD_PAGE_80_SERIAL_OFFSET + VPD_PAGE_80_MAX_SERIAL_LENGTH])


class SerialStrategy(object):
    name = None

    def get_serial(self, source, device):  # pragma: no cover
        """Returns the serial number, or None if this strategy does not apply to the device.
        Raises `sastopology.errors.SerialResolutionError` if it applies but fails."""
        raise NotImplementedError()

    def __repr__(self):
        return "<{}>".format(self.__class__.__name__)


class SysfsVpdPage80Strategy(SerialStrategy):
    """Reads the unit serial number page the kernel caches in sysfs (<device>/vpd_pg80)"""
    name = "vpd_pg80"

    def get_serial(self, source, device):
        try:
            buffer = source.read_binary_attribute(device.sysfs_path, "vpd_pg80")
        except AttributeNotFoundError:
            return None
        except AttributeReadError as error:
            raise chain(SerialResolutionError("failed to read vpd_pg80 of {}: {}".format(device.id, error)))
        return get_serial_from_vpd_page_80(buffer)


class InquiryVpdPage80Strategy(SerialStrategy):
    """Sends INQUIRY for VPD page 0x80 to the scsi generic node, for kernels that do not export vpd_pg80"""
    name = "inquiry"

    def get_serial(self, source, device):
        scsi_access_path = device.get_scsi_access_path()
        if scsi_access_path is None:
            return None
        return self._inquire(scsi_access_path)

    def _inquire(self, scsi_access_path):
        from infi.asi import create_platform_command_executer, create_os_file
        from infi.asi.errors import AsiOSError, AsiSCSIError
        from infi.asi.coroutines.sync_adapter import sync_wait
        from infi.asi.cdb.inquiry.vpd_pages import get_vpd_page, INQUIRY_PAGE_UNIT_SERIAL_NUMBER
        try:
            handle = create_os_file(scsi_access_path)
        except (IOError, OSError, AsiOSError) as error:
            raise chain(SerialResolutionError("cannot open {}: {}".format(scsi_access_path, error)))
        try:
            executer = create_platform_command_executer(handle, timeout=SG_TIMEOUT_IN_MS)
            inquiry_command = get_vpd_page(INQUIRY_PAGE_UNIT_SERIAL_NUMBER)()
            page = sync_wait(inquiry_command.execute(executer))
        except (IOError, OSError, AsiOSError, AsiSCSIError) as error:
            msg = "INQUIRY for unit serial number of {} failed: {}"
            raise chain(SerialResolutionError(msg.format(scsi_access_path, error)))
        finally:
            handle.close()
        return page.product_serial_number.strip()


class SesPage7Strategy(SerialStrategy):
    """Decodes the serial number out of SES page 0x7 for enclosure models listed in `serial_locations`"""
    name = "ses"

    def __init__(self, reader=None, serial_locations=None):
        super(SesPage7Strategy, self).__init__()
        self.reader = reader or SesPageReader()
        self.serial_locations = SES_SERIAL_LOCATIONS if serial_locations is None else serial_locations

    def get_serial(self, source, device):
        location = self.serial_locations.get(device.model)
        if location is None:
            return None
        raw = self.reader.read_page_hex(device.get_scsi_access_path(), location.page)
        return extract_serial(decode_hex_dump(raw), location)


DEFAULT_DISK_SERIAL_STRATEGIES = (SysfsVpdPage80Strategy(), InquiryVpdPage80Strategy())


class IdentityResolver(object):
    """Reads what a device is (type, vendor, model, revision, SAS address) and who it is (serial number)"""

    def __init__(self, source, disk_serial_strategies=DEFAULT_DISK_SERIAL_STRATEGIES, ses_strategy=None):
        super(IdentityResolver, self).__init__()
        self.source = source
        self.disk_serial_strategies = tuple(disk_serial_strategies)
        self.ses_strategy = ses_strategy or SesPage7Strategy()

    def update_device_type(self, device):
        """Raises `AttributeReadError` if the type cannot be read, `UnknownDeviceTypeError` if it is not supported"""
        device.device_type = self.source.read_int_attribute(device.sysfs_path, "type")
        if device.device_type not in (SCSI_TYPE_DISK, SCSI_TYPE_ENCLOSURE):
            raise UnknownDeviceTypeError(device.id, device.device_type)

    def _read_optional_attribute(self, device, name):
        try:
            return self.source.read_attribute(device.sysfs_path, name)
        except AttributeReadError as error:
            logger.warning("cannot read {} of device {}: {}".format(name, device.id, error))
            return ''

    def update_attributes(self, device):
        """Reads each attribute on its own; an unreadable one is logged and left empty"""
        path = device.sysfs_path
        device.model = self._read_optional_attribute(device, "model")
        device.vendor = self._read_optional_attribute(device, "vendor")
        device.revision = self._read_optional_attribute(device, "rev")
        # some devices don't have a sas_address in sysfs
        device.sas_address = self._read_optional_attribute(device, "sas_address")
        device.block_device_name = self._get_child_device_name(path, "block")
        device.scsi_generic_device_name = self._get_child_device_name(path, "scsi_generic")

    def _get_child_device_name(self, path, subsystem):
        # on ubuntu: <device>/scsi_generic/sg1
        # on redhat: <device>/scsi_generic:sg1
        try:
            return self.source.list_children("/".join([path, subsystem]))[0]
        except (AttributeReadError, IndexError):
            pass
        try:
            children = self.source.list_children(path)
        except AttributeReadError:
            return None
        names = [name.split(':', 1)[-1] for name in children if name.startswith(subsystem + ':')]
        return names[0] if names else None

    def get_serial_strategies(self, device):
        if device.is_enclosure() and device.model in self.ses_strategy.serial_locations:
            return (self.ses_strategy, )
        return self.disk_serial_strategies

    def update_serial(self, device):
        """Sets the serial number using the first strategy that applies.
        Raises `SerialResolutionError` if none applies or the one that applies fails."""
        if device.device_type not in (SCSI_TYPE_DISK, SCSI_TYPE_ENCLOSURE):
            raise UnknownDeviceTypeError(device.id, device.device_type)
        if device.is_enclosure() and not device.model:
            # the model picks the SES layout, vpd_pg80 of such enclosures is garbage
            raise SerialResolutionError("model of enclosure {} is unknown".format(device.id))
        for strategy in self.get_serial_strategies(device):
            serial = strategy.get_serial(self.source, device)
            if serial is not None:
                logger.debug("serial of {} is {!r} (from {})".format(device.id, serial, strategy.name))
                device.serial = serial
                return
        raise SerialResolutionError("no way to read the serial number of device {}".format(device.id))
