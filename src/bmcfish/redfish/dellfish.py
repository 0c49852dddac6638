import logging
from urllib.parse import urlparse

from bmcfish.redfish.constants import MediaType
from bmcfish.redfish.defaultfish import DefaultFish
from bmcfish.redfish.errors import (
    CapabilityError,
    ConfigurationError,
    RedfishProtocolError,
    TaskFailedError,
)
from bmcfish.redfish.tasks import wait_for_task

logger = logging.getLogger(__name__)

IMPORT_SYSTEM_CONFIGURATION_ACTIONS = (
    '#OemManager.ImportSystemConfiguration',
    '#EID_674_Manager.ImportSystemConfiguration',
)


class DellFish(DefaultFish):
    """
    Dell iDRAC Redfish implementation.

    iDRAC ignores the standard boot override for virtual media, so the
    one-time boot device is set by importing a Server Configuration Profile
    through the Manager OEM action and waiting for the resulting job.
    """
    vendor = 'dell'

    def __init__(self, redfish, clear_job_queue: bool = False):
        super().__init__(redfish)
        self.clear_job_queue_before_import = clear_job_queue


    def _manager_oem_service(self, system_id: str, service: str) -> dict:
        """Fetch an OEM service linked from the Manager's Links.Oem.Dell."""
        manager = self.rf.get_manager_info(system_id)
        dell_links = ((manager.get('Links') or {}).get('Oem') or {}).get('Dell') or {}
        uri = (dell_links.get(service) or {}).get('@odata.id')
        if not uri:
            raise ConfigurationError(f'Manager does not link {service}', uri=manager.get('@odata.id'),
                                     operation=service)
        return self.api.get(uri).data


    def clear_job_queue(self, system_id: str, force: bool = False) -> bool:
        """Delete all jobs from the iDRAC job queue.

        A pending configuration job blocks new configuration imports.

        Args:
            system_id: System whose manager owns the queue
            force: Also delete running jobs (JID_CLEARALL_FORCE)

        Returns:
            True if the request was accepted

        Raises:
            ConfigurationError: If the manager does not link DellJobService
            CapabilityError: If DellJobService has no DeleteJobQueue action
        """
        service = self._manager_oem_service(system_id, 'DellJobService')
        target = ((service.get('Actions') or {}).get('#DellJobService.DeleteJobQueue') or {}).get('target')
        if not target:
            raise CapabilityError('DellJobService does not expose DeleteJobQueue',
                                  uri=service.get('@odata.id'), operation='clear_job_queue')

        job_id = 'JID_CLEARALL_FORCE' if force else 'JID_CLEARALL'
        self.api.post(target, data={'JobID': job_id})
        logger.info('Cleared iDRAC job queue (%s)', job_id)
        return True


    def set_virtual_media_boot(self, media_type: str, system_id: str) -> bool:
        """Set virtual media as the next one-time boot device via a configuration import.

        Args:
            media_type: 'CD' boots the virtual DVD, anything else the virtual floppy
            system_id: System to configure

        Returns:
            True once the import job completed successfully

        Raises:
            CapabilityError: If the manager has no ImportSystemConfiguration action
            RedfishProtocolError: If the import response carries no job location
            TaskFailedError: If the import job did not finish with status OK
        """
        manager = self.rf.get_manager_info(system_id)
        oem_actions = (manager.get('Actions') or {}).get('Oem') or {}
        target = None
        for action in IMPORT_SYSTEM_CONFIGURATION_ACTIONS:
            target = (oem_actions.get(action) or {}).get('target')
            if target:
                break
        if not target:
            raise CapabilityError('Manager does not expose ImportSystemConfiguration',
                                  uri=manager.get('@odata.id'), operation='set_virtual_media_boot')

        if self.clear_job_queue_before_import:
            self.clear_job_queue(system_id)

        boot_device = 'VCD-DVD' if media_type == MediaType.CD else 'vFDD'
        payload = {
            'ShareParameters': {'Target': ['ALL']},
            'ImportBuffer': (
                '<SystemConfiguration>'
                f"<Component FQDD='{manager.get('Id')}'>"
                "<Attribute Name='ServerBoot.1#BootOnce'>Enabled</Attribute>"
                f"<Attribute Name='ServerBoot.1#FirstBootDevice'>{boot_device}</Attribute>"
                '</Component>'
                '</SystemConfiguration>'
            ),
        }

        response = self.api.post(target, data=payload)
        task_uri = response.headers.get('Location')
        if not task_uri:
            raise RedfishProtocolError('Configuration import did not return a job location',
                                       uri=target, operation='set_virtual_media_boot')

        logger.info('Waiting for configuration import job %s', task_uri)
        if not wait_for_task(self.api, task_uri):
            raise TaskFailedError('Configuration import job did not complete successfully',
                                  uri=task_uri, operation='set_virtual_media_boot')
        return True


    def get_kvm_url(self, system_id: str) -> str:
        """Build a virtual console URL with temporary KVM credentials.

        Returns:
            URL of the iDRAC HTML5 virtual console, logged in with the temporary session

        Raises:
            CapabilityError: If DelliDRACCardService has no GetKVMSession action
            RedfishProtocolError: If the response carries no temporary credentials
        """
        service = self._manager_oem_service(system_id, 'DelliDRACCardService')
        target = ((service.get('Actions') or {}).get('#DelliDRACCardService.GetKVMSession') or {}).get('target')
        if not target:
            raise CapabilityError('DelliDRACCardService does not expose GetKVMSession',
                                  uri=service.get('@odata.id'), operation='get_kvm_url')

        data = self.api.post(target, data={'SessionTypeName': 'idrac-graphical'}).data
        temp_username = data.get('TempUsername')
        temp_password = data.get('TempPassword')
        if not temp_username or not temp_password:
            raise RedfishProtocolError('GetKVMSession returned no temporary credentials',
                                       uri=target, operation='get_kvm_url')

        netloc = urlparse(self.api.base_url).netloc
        return (f'{self.api.base_url}/restgui/vconsole/index.html?ip={netloc}&kvmport=443'
                f'&title=idrac-graphical&VCSID={temp_username}&VCSID2={temp_password}')
