import logging

from bmcfish.redfish.constants import BootTarget, MediaType
from bmcfish.redfish.errors import CapabilityError, DriverNotImplementedError
from bmcfish.redfish.inventory import project_network_port

logger = logging.getLogger(__name__)


class DefaultFish:
    """
    Standard Redfish implementation.

    Used for BMCs whose OEM marker is not recognized. Relies only on the
    DMTF VirtualMedia actions and the ComputerSystem boot override; vendor
    drivers subclass it and replace the steps their firmware does differently.
    """
    vendor = 'default'

    def __init__(self, redfish):
        self.rf = redfish
        self.api = redfish.api


    def _media_action(self, media: dict, action: str) -> str:
        target = ((media.get('Actions') or {}).get(action) or {}).get('target')
        if not target:
            raise CapabilityError(f'Virtual media device does not expose {action}',
                                  uri=media.get('@odata.id'), operation=action)
        return target


    def mount_virtual_media(self, image_uri: str, media: dict) -> bool:
        """Insert an image into a virtual media device.

        Args:
            image_uri: URI of the image the BMC should attach
            media: VirtualMedia document of the selected device

        Returns:
            True if the BMC accepted the request

        Raises:
            CapabilityError: If the device has no InsertMedia action
        """
        target = self._media_action(media, '#VirtualMedia.InsertMedia')
        self.api.post(target, data={'Image': image_uri})
        return True


    def unmount_virtual_media(self, media: dict) -> bool:
        target = self._media_action(media, '#VirtualMedia.EjectMedia')
        self.api.post(target, data={})
        return True


    def boot_target_for(self, media_type: str) -> str:
        return BootTarget.CD if media_type == MediaType.CD else BootTarget.USB


    def set_virtual_media_boot(self, media_type: str, system_id: str) -> bool:
        """Make the mounted virtual media the next one-time boot device."""
        return self.rf.set_next_boot_device(system_id, self.boot_target_for(media_type))


    def project_network_port(self, data: dict) -> dict:
        return project_network_port(data)


    def get_kvm_url(self, system_id: str) -> str:
        raise DriverNotImplementedError('KVM console access', self.vendor)
