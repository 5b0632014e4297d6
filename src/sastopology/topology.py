from .config import Conf
from .enclosure import EnclosureAssigner
from .errors import AttributeReadError, AttributeNotFoundError, MalformedPathError
from .errors import SerialResolutionError, UnknownDeviceTypeError
from .hba import HBAGraphBuilder
from .identity import IdentityResolver, SesPage7Strategy
from .locator import PathLocator
from .multipath import MultipathMerger, group_devices_by
from .ses import SesPageReader
from .device import Device
from .sysfs import Sysfs
from logging import getLogger

logger = getLogger(__name__)


class Topology(object):
    """The result of a discovery run.

    * `devices`: device id (H:C:T:L) -> `sastopology.device.Device`
    * `logical_units`: serial number or SAS address -> `sastopology.multipath.LogicalUnit`
    * `enclosures`: unit id -> `sastopology.enclosure.Enclosure`
    * `hbas`: PCI bus id -> `sastopology.hba.HBA`
    """

    def __init__(self, devices, logical_units, enclosures, hbas):
        super(Topology, self).__init__()
        self.devices = devices
        self.logical_units = logical_units
        self.enclosures = enclosures
        self.hbas = hbas

    def get_logical_unit(self, device):
        return self.logical_units.get(device.logical_unit_id)

    def get_enclosure(self, device):
        return self.enclosures.get(device.enclosure_id)

    def get_hba(self, device):
        return self.hbas.get(device.hba_id)

    def get_paths(self, logical_unit):
        """Returns the devices of the unit"""
        return [self.devices[device_id] for device_id in logical_unit.paths]

    def get_devices_with_path_count_mismatch(self, expected_path_count):
        """Returns the devices that do not have exactly `expected_path_count` paths to their unit, orphans included"""
        mismatches = []
        for device in self.devices.values():
            logical_unit = self.get_logical_unit(device)
            if logical_unit is None or logical_unit.get_path_count() != expected_path_count:
                mismatches.append(device)
        return mismatches

    def __repr__(self):
        _repr = "<{}: {} devices, {} units, {} enclosures, {} HBAs>"
        return _repr.format(self.__class__.__name__, len(self.devices), len(self.logical_units),
                            len(self.enclosures), len(self.hbas))


class TopologyCoordinator(object):
    """Discovers the SAS topology: per-device identity and location first, then the cross-device passes.

    Failures of a single device are logged and never abort the run."""

    def __init__(self, conf=None, source=None, ses_reader=None):
        super(TopologyCoordinator, self).__init__()
        self.conf = conf or Conf()
        self.source = source or Sysfs()
        ses_reader = ses_reader or SesPageReader(timeout_in_seconds=self.conf.ses_timeout)
        ses_strategy = SesPage7Strategy(ses_reader, self.conf.ses_serial_models)
        self.identity_resolver = IdentityResolver(self.source, ses_strategy=ses_strategy)
        self.hba_builder = HBAGraphBuilder(self.source, self.conf.hba_labels)
        self.path_locator = PathLocator(self.source, self.hba_builder)
        self.multipath_merger = MultipathMerger()
        self.enclosure_assigner = EnclosureAssigner(self.conf.path_prefix_match_depth)

    def _get_device_names(self):
        from infi.dtypes.hctl import HCTL
        try:
            names = self.source.get_scsi_device_names()
        except AttributeNotFoundError:
            logger.warning("no SCSI devices found")
            return []
        try:
            return sorted(names, key=HCTL.from_string)
        except (TypeError, ValueError):
            logger.debug("not all SCSI device names are H:C:T:L, sorting them as strings")
            return sorted(names)

    def create_device(self, name):
        """Returns a `Device` with everything that can be learned about it alone, or None if it should be skipped"""
        try:
            device = Device(name, self.source.get_scsi_device_path(name))
        except AttributeReadError as error:
            logger.warning("{}, skipping device {}".format(error, name))
            return None

        try:
            self.identity_resolver.update_device_type(device)
        except (AttributeReadError, UnknownDeviceTypeError) as error:
            logger.warning("{}, skipping device {}".format(error, name))
            return None

        self.identity_resolver.update_attributes(device)
        try:
            self.identity_resolver.update_serial(device)
        except SerialResolutionError as error:
            logger.warning("failed to get serial number of device {}: {}".format(name, error))

        try:
            self.path_locator.update_location(device)
        except MalformedPathError as error:
            logger.warning("failed to locate device {}: {}".format(name, error))

        self.path_locator.update_slot(device)
        return device

    def discover(self):
        """Returns a `Topology` of the host"""
        devices = dict()
        for name in self._get_device_names():
            device = self.create_device(name)
            if device is not None:
                devices[name] = device
        logger.debug("found {} SCSI devices".format(len(devices)))

        devices_by_serial = group_devices_by(devices.values(), "serial")
        devices_by_sas_address = group_devices_by(devices.values(), "sas_address")
        logical_units = self.multipath_merger.merge(devices, devices_by_serial, devices_by_sas_address)

        enclosure_devices = [device for device in devices.values() if device.is_enclosure()]
        enclosures = self.enclosure_assigner.assign(devices, enclosure_devices, logical_units)
        return Topology(devices, logical_units, enclosures, dict(self.hba_builder.hbas))
