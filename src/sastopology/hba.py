from threading import Lock
from .errors import AttributeReadError
from logging import getLogger

logger = getLogger(__name__)

PCI_ID_SEGMENT = 5
HOST_SEGMENT = 6
PORT_SEGMENT = 7


class Phy(object):
    """A single SAS lane of an HBA port"""
    def __init__(self, phy_identifier, sas_address):
        super(Phy, self).__init__()
        self.phy_identifier = phy_identifier
        self.sas_address = sas_address

    def __repr__(self):
        return "<{}(phy_identifier={!r}, sas_address={!r})>".format(self.__class__.__name__,
                                                                   self.phy_identifier, self.sas_address)


class HBAPort(object):
    def __init__(self, port_id, phys):
        super(HBAPort, self).__init__()
        self.port_id = port_id
        self.phys = phys

    def get_phy_ids(self):
        return [phy.phy_identifier for phy in self.phys]

    def __repr__(self):
        return "<{}(port_id={!r}, phys={!r})>".format(self.__class__.__name__, self.port_id, self.get_phy_ids())


class HBA(object):
    """A PCI SAS host bus adapter, identified by its PCI bus id"""
    def __init__(self, pci_id, host, slot, ports):
        super(HBA, self).__init__()
        self.pci_id = pci_id
        self.host = host
        self.slot = slot
        self.ports = ports  # port_id -> HBAPort

    def get_port(self, port_id):
        """Returns the `HBAPort` with the given id, or None"""
        return self.ports.get(port_id)

    def get_phy_ids(self):
        return [phy_id for port_id in sorted(self.ports) for phy_id in self.ports[port_id].get_phy_ids()]

    def __repr__(self):
        _repr = "<{}(pci_id={!r}, host={!r}, slot={!r}, ports={!r})>"
        return _repr.format(self.__class__.__name__, self.pci_id, self.host, self.slot, sorted(self.ports))


class HBAGraphBuilder(object):
    """Builds the HBA -> port -> phy graph while devices are being located.

    There is one `HBA` per PCI bus id; the ports and phys of an adapter are enumerated once, when the adapter is first
    seen."""

    def __init__(self, source, hba_labels=None):
        super(HBAGraphBuilder, self).__init__()
        self.source = source
        self.hba_labels = dict(hba_labels or {})
        self.hbas = dict()
        self._lock = Lock()

    def get_or_create_hba(self, path_segments):
        """Returns the `HBA` of a device from the segments of its sysfs path
        (at least `PORT_SEGMENT` + 1 of them, checked by the caller)"""
        pci_id = path_segments[PCI_ID_SEGMENT]
        with self._lock:
            hba = self.hbas.get(pci_id)
            if hba is None:
                host_path = "/".join(path_segments[:HOST_SEGMENT + 1])
                logger.debug("found new HBA {} at {}".format(pci_id, host_path))
                hba = HBA(pci_id, path_segments[HOST_SEGMENT], self.hba_labels.get(pci_id, ''),
                          self._find_ports(host_path))
                self.hbas[pci_id] = hba
            return hba

    def _find_ports(self, host_path):
        ports = dict()
        try:
            children = self.source.list_children(host_path)
        except AttributeReadError:
            logger.warning("cannot list the ports of {}".format(host_path))
            return ports
        for port_id in children:
            if not port_id.startswith("port-"):
                continue
            ports[port_id] = HBAPort(port_id, self._find_phys("/".join([host_path, port_id])))
        return ports

    def _find_phys(self, port_path):
        phys = []
        try:
            children = self.source.list_children(port_path)
        except AttributeReadError:
            return phys
        for phy_name in children:
            if not phy_name.startswith("phy-"):
                continue
            # port-2:0/phy-2:0/sas_phy/phy-2:0
            sas_phy_path = "/".join([port_path, phy_name, "sas_phy", phy_name])
            try:
                phy_identifier = self.source.read_attribute(sas_phy_path, "phy_identifier")
                sas_address = self.source.read_attribute(sas_phy_path, "sas_address")
            except AttributeReadError:
                logger.debug("skipping phy {}, it is not exposed".format(sas_phy_path))
                continue
            phys.append(Phy(phy_identifier, sas_address))
        return phys
