"""
Boot a system from a virtual media image.

The workflow is strictly sequential: locate the media collection, classify
the image, select a device, eject whatever is inserted, mount, configure the
next boot device, then restart or power on. A failing step raises its own
error and earlier steps are not rolled back, so a retried workflow may find
the image already mounted.
"""

import logging
import time
from typing import Optional
from urllib.parse import urlparse

from bmcfish.redfish.constants import MediaType, PowerState
from bmcfish.redfish.errors import (
    ConfigurationError,
    NoCompatibleDeviceError,
    StateError,
    ValidationError,
)
from bmcfish.redfish.inventory import fan_out, member_refs

logger = logging.getLogger(__name__)

IMAGE_MEDIA_TYPES = {
    '.iso': MediaType.CD,
    '.img': MediaType.USB_STICK,
}

POWER_SETTLE_TIMEOUT = 60
POWER_SETTLE_INTERVAL = 3


def classify_image(image_uri: str) -> str:
    """Map an image URI to the virtual media type that can host it.

    Raises:
        ValidationError: If the extension is not .iso or .img
    """
    path = urlparse(image_uri).path.lower()
    for extension, media_type in IMAGE_MEDIA_TYPES.items():
        if path.endswith(extension):
            return media_type
    raise ValidationError(f'Unsupported image format, expected one of {sorted(IMAGE_MEDIA_TYPES)}: {image_uri}',
                          operation='classify_image')


def accepts_media_type(media: dict, media_type: str) -> bool:
    # A device advertising no media types accepts anything
    media_types = media.get('MediaTypes') or []
    return not media_types or media_type in media_types


class VirtualMediaOrchestrator:
    """
    Runs the mount-and-boot workflow for a Redfish client.

    Args:
        redfish: Redfish client providing the API, the resource cache and the driver
        sleep: Sleep function used while waiting for a transitional power state
    """
    def __init__(self, redfish, sleep=time.sleep):
        self.rf = redfish
        self.api = redfish.api
        self.sleep = sleep


    def locate_media_collection(self, system_id: str) -> str:
        """Find the virtual media collection, on the System first and the Manager otherwise."""
        system = self.rf.get_system_info(system_id)
        uri = (system.get('VirtualMedia') or {}).get('@odata.id')
        if uri:
            return uri

        manager = self.rf.get_manager_info(system_id)
        uri = (manager.get('VirtualMedia') or {}).get('@odata.id')
        if not uri:
            raise ConfigurationError('No virtual media collection on system or manager',
                                     uri=manager.get('@odata.id'), operation='locate_media_collection')
        return uri


    def select_device(self, collection_uri: str, media_type: str) -> dict:
        """Fetch every device in the collection and pick the first compatible one.

        Raises:
            NoCompatibleDeviceError: If no device accepts the media type
        """
        refs = member_refs(self.api.get(collection_uri).data)
        devices = fan_out(lambda uri: self.api.get(uri).data, refs)
        for device in devices:
            if accepts_media_type(device, media_type):
                return device
        raise NoCompatibleDeviceError(f'No virtual media device supports {media_type}',
                                      uri=collection_uri, operation='select_device')


    def wait_for_stable_power_state(self, system_id: str, timeout: float = POWER_SETTLE_TIMEOUT,
                                    interval: float = POWER_SETTLE_INTERVAL) -> str:
        """Re-read the System until it reports On or Off.

        Raises:
            StateError: If the system is still in a transitional state after the timeout
        """
        waited = 0
        while True:
            state = self.rf.get_system_info(system_id, refresh=True).get('PowerState')
            if state in (PowerState.ON, PowerState.OFF):
                return state
            if waited >= timeout:
                raise StateError(f'System power state did not settle, last seen: {state}',
                                 uri=system_id, operation='wait_for_stable_power_state')
            logger.info('System %s power state is %s, waiting', system_id, state)
            self.sleep(interval)
            waited += interval


    def boot(self, image_uri: str, system_id: Optional[str] = None) -> dict:
        """Mount an image and boot the system from it.

        Args:
            image_uri: URI of an .iso (CD) or .img (USB stick) image reachable by the BMC
            system_id: Target system (default: first system)

        Returns:
            Dict with 'status', the selected 'media' device document, the 'media_type'
            and the 'power_action' issued

        Raises:
            ConfigurationError: No virtual media collection
            ValidationError: Unsupported image extension
            NoCompatibleDeviceError: No device accepts the image type
            StateError: Power state did not settle to On or Off
        """
        sys_id = system_id or self.rf.get_default_system_id()
        driver = self.rf.driver

        collection_uri = self.locate_media_collection(sys_id)
        media_type = classify_image(image_uri)
        media = self.select_device(collection_uri, media_type)
        logger.info('Selected virtual media device %s for %s image', media.get('@odata.id'), media_type)

        if media.get('Inserted'):
            logger.info('Ejecting %s from %s', media.get('Image'), media.get('@odata.id'))
            driver.unmount_virtual_media(media)

        driver.mount_virtual_media(image_uri, media)
        logger.info('Mounted %s', image_uri)

        driver.set_virtual_media_boot(media_type, sys_id)
        logger.info('Virtual media set as next boot device for system %s', sys_id)

        state = self.wait_for_stable_power_state(sys_id)
        if state == PowerState.ON:
            self.rf.force_restart(sys_id)
            power_action = 'ForceRestart'
        else:
            self.rf.power_on(sys_id)
            power_action = 'On'

        return {
            'status': True,
            'media': media,
            'media_type': media_type,
            'power_action': power_action,
        }
