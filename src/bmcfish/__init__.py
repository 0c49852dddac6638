"""Vendor-abstracting Redfish client for BMC inventory, power and virtual media boot."""

from bmcfish.redfish.redfish import Redfish, detect

__all__ = ['Redfish', 'detect']
