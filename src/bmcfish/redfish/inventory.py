"""
Hardware inventory collection.

Each inventory kind is resolved from a collection reference on the cached
System or Chassis document, then every member is fetched concurrently and
projected into a vendor-neutral dict.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from bmcfish.redfish.errors import ConfigurationError

logger = logging.getLogger(__name__)


def member_refs(collection: dict) -> list:
    """Extract the @odata.id of every member of a collection document."""
    return [m['@odata.id'] for m in collection.get('Members') or [] if m.get('@odata.id')]


def fan_out(func: Callable, items: list) -> list:
    """Call func on every item concurrently, one worker per item.

    Results keep the order of items regardless of completion order. The first
    exception (in item order) is raised and no partial result is returned.
    """
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as executor:
        return list(executor.map(func, items))


def project_cpu(data: dict) -> Optional[dict]:
    if data.get('ProcessorType') != 'CPU' or not data.get('ProcessorArchitecture'):
        logger.debug('Skipping processor %s: not a CPU or no architecture', data.get('Id'))
        return None
    return {
        'id': data.get('Id'),
        'manufacturer': data.get('Manufacturer') or 'Unknown',
        'model': data.get('Model') or 'Unknown',
        'architecture': data.get('ProcessorArchitecture'),
        'cores': data.get('TotalCores') or 0,
        'threads': data.get('TotalThreads') or 0,
        'speed_mhz': data.get('MaxSpeedMHz') or 0,
        'socket': data.get('Socket') or 'Unknown',
        'status': (data.get('Status') or {}).get('State') or 'Unknown',
    }


def project_memory(data: dict) -> Optional[dict]:
    if not data.get('Id'):
        logger.warning('Skipping memory module without Id: %s', data.get('@odata.id'))
        return None
    return {
        'id': data['Id'],
        'manufacturer': data.get('Manufacturer') or 'Unknown',
        'model': data.get('PartNumber') or data.get('Name') or 'Unknown',
        'capacity_mib': data.get('CapacityMiB') or 0,
        'speed_mhz': data.get('OperatingSpeedMhz') or 0,
        'type': data.get('MemoryDeviceType') or 'Unknown',
        'status': (data.get('Status') or {}).get('State') or 'Unknown',
    }


def project_pcie_device(data: dict) -> Optional[dict]:
    if not data.get('Id'):
        logger.warning('Skipping PCIe device without Id: %s', data.get('@odata.id'))
        return None
    return {
        'id': data['Id'],
        'manufacturer': data.get('Manufacturer') or 'Unknown',
        'model': data.get('Model') or data.get('Name') or 'Unknown',
        'type': data.get('DeviceType') or 'Unknown',
        'health': (data.get('Status') or {}).get('Health') or 'Unknown',
    }


def project_network_port(data: dict) -> dict:
    addresses = data.get('AssociatedNetworkAddresses') or []
    speed = data.get('CurrentLinkSpeedMbps')
    return {
        'mac_address': addresses[0] if addresses else 'Unknown',
        'link_status': data.get('LinkStatus') or 'Unknown',
        'speed_mbps': speed if speed else -1,
        'speed_display': f'{speed}Mbps' if speed else 'Unknown',
    }


class InventoryAggregator:
    """
    Collects normalized CPU, memory, PCIe and network inventory for a system.

    Args:
        redfish: Redfish client providing the API, the resource cache and the driver
    """
    def __init__(self, redfish):
        self.rf = redfish
        self.api = redfish.api


    def _fetch(self, uri: str) -> dict:
        return self.api.get(uri).data


    def _collect(self, refs: list, project: Callable) -> list:
        def fetch_and_project(uri):
            return project(self._fetch(uri))

        return [item for item in fan_out(fetch_and_project, refs) if item is not None]


    def _collection_refs(self, document: dict, link: str, system_id: str) -> list:
        uri = (document.get(link) or {}).get('@odata.id')
        if not uri:
            raise ConfigurationError(f'{link} collection link not found', uri=document.get('@odata.id'),
                                     operation=f'get_{link.lower()}')
        refs = member_refs(self._fetch(uri))
        if not refs:
            raise ConfigurationError(f'No {link} members found for system {system_id}', uri=uri,
                                     operation=f'get_{link.lower()}')
        return refs


    def get_cpu_info(self, system_id: Optional[str] = None) -> list:
        """Get CPU inventory; non-CPU processors (GPUs, FPGAs) are left out.

        Raises:
            ConfigurationError: If the system has no processor collection or it is empty
        """
        sys_id = system_id or self.rf.get_default_system_id()
        system = self.rf.get_system_info(sys_id)
        refs = self._collection_refs(system, 'Processors', sys_id)
        return self._collect(refs, project_cpu)


    def get_memory_info(self, system_id: Optional[str] = None) -> list:
        sys_id = system_id or self.rf.get_default_system_id()
        system = self.rf.get_system_info(sys_id)
        refs = self._collection_refs(system, 'Memory', sys_id)
        return self._collect(refs, project_memory)


    def get_pcie_devices_info(self, system_id: Optional[str] = None) -> list:
        """Get PCIe device inventory.

        Vendors disagree on where PCIe devices are linked: the System's
        PCIeDevices list is tried first, then the Chassis PCIeDevices collection.
        """
        sys_id = system_id or self.rf.get_default_system_id()
        system = self.rf.get_system_info(sys_id)

        refs = [d['@odata.id'] for d in system.get('PCIeDevices') or [] if d.get('@odata.id')]
        results = self._collect(refs, project_pcie_device)
        if results:
            return results

        chassis = self.rf.get_chassis_info(sys_id)
        uri = (chassis.get('PCIeDevices') or {}).get('@odata.id')
        if uri:
            results = self._collect(member_refs(self._fetch(uri)), project_pcie_device)
        if not results:
            logger.warning('No PCIe devices found for system %s', sys_id)
        return results


    def _get_network_card(self, uri: str) -> Optional[dict]:
        data = self._fetch(uri)
        if not data.get('Id'):
            logger.warning('Skipping network adapter without Id: %s', uri)
            return None

        ports_uri = (data.get('NetworkPorts') or data.get('Ports') or {}).get('@odata.id')
        port_refs = member_refs(self._fetch(ports_uri)) if ports_uri else []
        if not port_refs:
            logger.warning('Network adapter %s has no ports', data['Id'])
            return None

        ports = fan_out(lambda port_uri: self.rf.driver.project_network_port(self._fetch(port_uri)), port_refs)
        return {
            'id': data['Id'],
            'manufacturer': data.get('Manufacturer') or 'Unknown',
            'model': data.get('Model') or data.get('Name') or 'Unknown',
            'status': (data.get('Status') or {}).get('State') or 'Unknown',
            'ports': ports,
        }


    def get_network_interface_info(self, system_id: Optional[str] = None) -> list:
        """Get network adapters and their ports, always resolved through the Chassis."""
        sys_id = system_id or self.rf.get_default_system_id()
        chassis = self.rf.get_chassis_info(sys_id)

        uri = (chassis.get('NetworkAdapters') or {}).get('@odata.id')
        if not uri:
            logger.warning('No network adapters linked from chassis of system %s', sys_id)
            return []

        refs = member_refs(self._fetch(uri))
        return [card for card in fan_out(self._get_network_card, refs) if card is not None]
