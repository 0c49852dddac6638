import logging
from typing import Optional

from bmcfish.redfish.cache import ResourceCache
from bmcfish.redfish.constants import SYSTEMS, BootOverrideEnabled, BootTarget, ResetType
from bmcfish.redfish.defaultfish import DefaultFish
from bmcfish.redfish.dellfish import DellFish
from bmcfish.redfish.errors import (
    CapabilityError,
    ConfigurationError,
    RedfishError,
    UnsupportedVendorError,
    ValidationError,
)
from bmcfish.redfish.fishapi import RedfishAPI
from bmcfish.redfish.huaweifish import HuaweiFish
from bmcfish.redfish.inventory import InventoryAggregator
from bmcfish.redfish.virtualmedia import VirtualMediaOrchestrator

logger = logging.getLogger(__name__)

# Checked in order against the service root's Oem keys
VENDOR_DRIVERS = (
    ('Dell', DellFish),
    ('Huawei', HuaweiFish),
)

DRIVERS_BY_NAME = {
    'dell': DellFish,
    'huawei': HuaweiFish,
    'default': DefaultFish,
}


def detect_driver(service_root: dict):
    """Pick the driver class for a BMC from its service root OEM marker.

    An Oem object naming no known vendor falls back to DefaultFish with a
    warning, so untested vendors still get the standard behaviour.

    Raises:
        UnsupportedVendorError: If the service root has no Oem object at all
    """
    oem = service_root.get('Oem')
    if not isinstance(oem, dict):
        raise UnsupportedVendorError('Service root carries no Oem marker', uri='/redfish/v1',
                                     operation='detect_driver')
    for key, driver_class in VENDOR_DRIVERS:
        if key in oem:
            return driver_class
    logger.warning('Unrecognized OEM vendor(s) %s, falling back to the default driver', ', '.join(oem) or '(empty)')
    return DefaultFish


def detect(ip: str, username: str, password: str, **kwargs) -> 'Redfish':
    """Create a Redfish client whose driver is chosen from the BMC's service root."""
    return Redfish(ip, username, password, **kwargs)


class Redfish:
    """
    Redfish API client for interacting with the Redfish service.

    Holds the per-client state (API session, resource cache, vendor driver)
    and delegates the vendor-specific steps to the driver chosen from the
    service root's OEM marker, unless a vendor is forced.
    """
    def __init__(self, ip: str, username: str, password: str, verify_ssl: bool = False,
                 vendor: Optional[str] = None, timeout: int = 30, clear_job_queue: bool = False):
        self.api = RedfishAPI(ip, username, password, verify_ssl=verify_ssl, timeout=timeout)
        self.cache = ResourceCache(self._load_resource)
        self.system_ids = []

        if vendor:
            driver_class = DRIVERS_BY_NAME.get(vendor.lower())
            if driver_class is None:
                raise ValidationError(f'Unknown vendor: {vendor}. Choose from {sorted(DRIVERS_BY_NAME)}')
        else:
            driver_class = detect_driver(self.api.get_service_root())

        if driver_class is DellFish:
            self.driver = DellFish(self, clear_job_queue=clear_job_queue)
        else:
            self.driver = driver_class(self)
        self.vendor = self.driver.vendor

        self.inventory = InventoryAggregator(self)
        self.virtual_media = VirtualMediaOrchestrator(self)


    def __enter__(self):
        return self


    def __exit__(self, exc_type, exc, tb):
        # BMCs cap concurrent sessions, so do not leak one
        if not self.api.token:
            return
        if exc_type is None:
            self.close_session()
            return
        try:
            self.close_session()
        except RedfishError as e:
            logger.warning('Could not release session on %s: %s', self.api.ip, e)


    def close_session(self) -> None:
        self.api.release()


    def is_available(self) -> bool:
        return self.api.is_reachable()


    def get_system_ids(self) -> list:
        """Get the IDs of all systems from the Systems collection."""
        data = self.api.get(SYSTEMS).data
        members = data.get('Members') or []
        if not members:
            raise ConfigurationError('No systems found', uri=SYSTEMS, operation='get_system_ids')
        # e.g., "/redfish/v1/Systems/System.Embedded.1" -> "System.Embedded.1"
        self.system_ids = [m['@odata.id'].rstrip('/').split('/')[-1] for m in members]
        return self.system_ids


    def get_default_system_id(self) -> str:
        if not self.system_ids:
            self.get_system_ids()
        return self.system_ids[0]


    def _load_resource(self, kind: str, system_id: str) -> dict:
        if kind == 'system':
            response = self.api.get(f'{SYSTEMS}/{system_id}')
            data = response.data
            etag = response.headers.get('ETag') or data.get('@odata.etag')
            if etag:
                data['ETag'] = etag
            return data

        system = self.get_system_info(system_id)
        links = system.get('Links') or {}
        if kind == 'manager':
            refs = links.get('ManagedBy') or links.get('Managers')
        else:
            refs = links.get('Chassis')
        if not refs:
            raise ConfigurationError(f'System {system_id} does not link a {kind}',
                                     uri=system.get('@odata.id'), operation=f'get_{kind}_info')
        return self.api.get(refs[0]['@odata.id']).data


    def get_system_info(self, system_id: Optional[str] = None, refresh: bool = False) -> dict:
        """Get the System document, from the cache unless refresh is set."""
        return self.cache.get('system', system_id or self.get_default_system_id(), refresh=refresh)


    def get_manager_info(self, system_id: Optional[str] = None, refresh: bool = False) -> dict:
        return self.cache.get('manager', system_id or self.get_default_system_id(), refresh=refresh)


    def get_chassis_info(self, system_id: Optional[str] = None, refresh: bool = False) -> dict:
        return self.cache.get('chassis', system_id or self.get_default_system_id(), refresh=refresh)


    def get_cpu_info(self, system_id: Optional[str] = None) -> list:
        return self.inventory.get_cpu_info(system_id)


    def get_memory_info(self, system_id: Optional[str] = None) -> list:
        return self.inventory.get_memory_info(system_id)


    def get_pcie_devices_info(self, system_id: Optional[str] = None) -> list:
        return self.inventory.get_pcie_devices_info(system_id)


    def get_network_interface_info(self, system_id: Optional[str] = None) -> list:
        return self.inventory.get_network_interface_info(system_id)


    def get_power_state(self, system_id: Optional[str] = None, refresh: bool = False) -> str:
        system = self.get_system_info(system_id, refresh=refresh)
        state = system.get('PowerState')
        if not state:
            raise ConfigurationError('System does not report PowerState', uri=system.get('@odata.id'),
                                     operation='get_power_state')
        return state


    def get_supported_reset_types(self, system_id: Optional[str] = None) -> dict:
        """Get the reset action of a system and the reset types it advertises.

        Returns:
            Dict with 'types' (list of allowed types, empty if not advertised) and 'target'
        """
        system = self.get_system_info(system_id)
        reset_action = (system.get('Actions') or {}).get('#ComputerSystem.Reset') or {}
        return {
            'types': reset_action.get('ResetType@Redfish.AllowableValues') or [],
            'target': reset_action.get('target'),
        }


    def set_power_state(self, reset_type: str, system_id: Optional[str] = None) -> bool:
        """Request a power transition through the ComputerSystem.Reset action.

        Success means the BMC accepted the request, not that the power state
        has changed; re-read the system to confirm.

        Args:
            reset_type: ResetType value (e.g. 'On', 'ForceOff', 'ForceRestart')
            system_id: Target system (default: first system)

        Returns:
            True if the request was accepted

        Raises:
            CapabilityError: If the system has no reset action
            ValidationError: If the system advertises allowed reset types and reset_type is not one
        """
        sys_id = system_id or self.get_default_system_id()
        supported = self.get_supported_reset_types(sys_id)
        if not supported['target']:
            raise CapabilityError('System does not support the ComputerSystem.Reset action',
                                  uri=f'{SYSTEMS}/{sys_id}', operation='set_power_state')
        if supported['types'] and reset_type not in supported['types']:
            raise ValidationError(f"Reset type '{reset_type}' not supported. Supported types: {supported['types']}",
                                  uri=supported['target'], operation='set_power_state')

        self.api.post(supported['target'], data={'ResetType': reset_type})
        logger.info('Requested %s for system %s', reset_type, sys_id)
        return True


    def power_on(self, system_id: Optional[str] = None) -> bool:
        return self.set_power_state(ResetType.ON, system_id)


    def shutdown(self, system_id: Optional[str] = None) -> bool:
        return self.set_power_state(ResetType.GRACEFUL_SHUTDOWN, system_id)


    def force_off(self, system_id: Optional[str] = None) -> bool:
        return self.set_power_state(ResetType.FORCE_OFF, system_id)


    def force_restart(self, system_id: Optional[str] = None) -> bool:
        return self.set_power_state(ResetType.FORCE_RESTART, system_id)


    def set_next_boot_device(self, system_id: Optional[str] = None, target: str = BootTarget.CD,
                             once: bool = True, mode: str = 'UEFI') -> bool:
        """Set the boot source override of a system.

        The PATCH carries If-Match with the last ETag seen for the system so a
        concurrent writer's change is not silently overwritten.

        Args:
            system_id: Target system (default: first system)
            target: BootSourceOverrideTarget value (e.g. 'Cd', 'Pxe', 'Hdd')
            once: Override the next boot only, instead of every boot
            mode: BootSourceOverrideMode ('UEFI' or 'Legacy')

        Returns:
            True if successful

        Raises:
            CapabilityError: If the system does not support boot source override
            ValidationError: If the system advertises allowed targets and target is not one
        """
        sys_id = system_id or self.get_default_system_id()
        system = self.get_system_info(sys_id)
        boot = system.get('Boot') or {}
        if not boot.get('BootSourceOverrideEnabled'):
            raise CapabilityError('System does not support setting the next boot device',
                                  uri=system.get('@odata.id'), operation='set_next_boot_device')

        allowed = boot.get('BootSourceOverrideTarget@Redfish.AllowableValues')
        if allowed and target not in allowed:
            raise ValidationError(f"Boot target '{target}' not allowed. Allowed targets: {allowed}",
                                  uri=system.get('@odata.id'), operation='set_next_boot_device')

        payload = {
            'Boot': {
                'BootSourceOverrideEnabled': BootOverrideEnabled.ONCE if once else BootOverrideEnabled.CONTINUOUS,
                'BootSourceOverrideTarget': target,
                'BootSourceOverrideMode': mode,
            }
        }
        headers = {'If-Match': system['ETag']} if system.get('ETag') else None
        self.api.patch(system.get('@odata.id') or f'{SYSTEMS}/{sys_id}', data=payload, headers=headers)
        logger.info('Next boot device of %s set to %s', sys_id, target)
        return True


    def boot_virtual_media(self, image_uri: str, system_id: Optional[str] = None) -> dict:
        """Mount an image on virtual media and boot the system from it."""
        return self.virtual_media.boot(image_uri, system_id)


    def get_kvm_url(self, system_id: Optional[str] = None) -> str:
        return self.driver.get_kvm_url(system_id or self.get_default_system_id())
