from bmcfish.redfish.constants import BootTarget, MediaType
from bmcfish.redfish.defaultfish import DefaultFish
from bmcfish.redfish.errors import CapabilityError


class HuaweiFish(DefaultFish):
    """
    Huawei iBMC Redfish implementation.

    iBMC attaches images through the OEM VmmControl action instead of
    InsertMedia/EjectMedia, and reports port speed only as an OEM string.
    """
    vendor = 'huawei'

    def vmm_control(self, media: dict, control_type: str, image_uri: str = None) -> bool:
        """Connect or disconnect virtual media via Oem.Huawei VmmControl.

        Args:
            media: VirtualMedia document
            control_type: 'Connect' or 'Disconnect'
            image_uri: Image to attach (Connect only)
        """
        actions = ((media.get('Oem') or {}).get('Huawei') or {}).get('Actions') or {}
        target = (actions.get('#VirtualMedia.VmmControl') or {}).get('target')
        if not target:
            raise CapabilityError('Virtual media device does not expose VmmControl',
                                  uri=media.get('@odata.id'), operation='vmm_control')

        payload = {'VmmControlType': control_type}
        if control_type == 'Connect':
            payload['Image'] = image_uri

        self.api.post(target, data=payload)
        return True


    def mount_virtual_media(self, image_uri: str, media: dict) -> bool:
        return self.vmm_control(media, 'Connect', image_uri)


    def unmount_virtual_media(self, media: dict) -> bool:
        return self.vmm_control(media, 'Disconnect')


    def boot_target_for(self, media_type: str) -> str:
        # iBMC exposes removable images as a floppy boot source
        return BootTarget.CD if media_type == MediaType.CD else BootTarget.FLOPPY


    def project_network_port(self, data: dict) -> dict:
        addresses = data.get('AssociatedNetworkAddresses') or []
        max_speed = ((data.get('Oem') or {}).get('Huawei') or {}).get('PortMaxSpeed')
        return {
            'mac_address': addresses[0] if addresses else 'Unknown',
            'link_status': data.get('LinkStatus') or 'Unknown',
            'speed_mbps': -1,
            'speed_display': max_speed or 'Unknown',
        }
