"""Redfish enumerations used by the client."""


class ResetType:
    """ComputerSystem.Reset ResetType values."""
    ON = 'On'
    FORCE_OFF = 'ForceOff'
    FORCE_RESTART = 'ForceRestart'
    GRACEFUL_SHUTDOWN = 'GracefulShutdown'
    GRACEFUL_RESTART = 'GracefulRestart'
    PUSH_POWER_BUTTON = 'PushPowerButton'
    NMI = 'Nmi'


class PowerState:
    ON = 'On'
    OFF = 'Off'
    POWERING_ON = 'PoweringOn'
    POWERING_OFF = 'PoweringOff'


class BootTarget:
    """BootSourceOverrideTarget values. Vendors advertise the subset they accept."""
    NONE = 'None'
    PXE = 'Pxe'
    HDD = 'Hdd'
    CD = 'Cd'
    USB = 'Usb'
    FLOPPY = 'Floppy'
    BIOS_SETUP = 'BiosSetup'
    UEFI_SHELL = 'UefiShell'
    SD_CARD = 'SDCard'


class BootOverrideEnabled:
    ONCE = 'Once'
    CONTINUOUS = 'Continuous'
    DISABLED = 'Disabled'


class MediaType:
    """VirtualMedia MediaTypes values."""
    CD = 'CD'
    DVD = 'DVD'
    USB_STICK = 'USBStick'
    FLOPPY = 'Floppy'


class TaskState:
    COMPLETED = 'Completed'
    EXCEPTION = 'Exception'
    KILLED = 'Killed'
    CANCELLED = 'Cancelled'

    FAILED = (EXCEPTION, KILLED, CANCELLED)


SERVICE_ROOT = '/redfish/v1'
SYSTEMS = '/redfish/v1/Systems'

# Huawei iBMC answers some successful actions with an error document holding only this message
BENIGN_SUCCESS_MESSAGE_IDS = ('Base.1.0.Success',)
