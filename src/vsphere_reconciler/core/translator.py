"""
Configuration Translator

Maps sparse declared configuration sections onto pyVmomi configuration
objects and back. Only declared sub-fields are written into an outgoing
spec; everything else is left unset so vCenter keeps its current value.

Author: uldyssian-sh
License: MIT
"""

import re
from typing import Any, Dict, List, Optional

import structlog
from pyVmomi import vim

from ..exceptions import ValidationError

logger = structlog.get_logger(__name__)


DRS_AUTOMATION_LEVELS = ("manual", "partiallyAutomated", "fullyAutomated")
HA_HOST_MONITORING = ("enabled", "disabled")
HA_VM_MONITORING = ("vmAndAppMonitoring", "vmMonitoringOnly", "vmMonitoringDisabled")
SHARES_LEVELS = ("low", "normal", "high")

UNLIMITED = -1

_CUSTOM_SHARES = re.compile(r"[0-9]+")


def single_section(name: str, sections: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return the one declared section instance, or None when absent"""
    if len(sections) > 1:
        raise ValidationError(f"only 1 {name} configuration section permitted")
    return sections[0] if sections else None


# Cluster DRS

def drs_config(sections: List[Dict[str, Any]]) -> Optional[vim.cluster.DrsConfigInfo]:
    section = single_section("drs", sections)
    if section is None:
        return None

    config = vim.cluster.DrsConfigInfo()
    config.enabled = True

    if "enable_vm_automation_override" in section:
        config.enableVmBehaviorOverrides = section["enable_vm_automation_override"]
    if "migration_threshold" in section:
        config.vmotionRate = section["migration_threshold"]
    if "default_automation_level" in section:
        level = section["default_automation_level"]
        if level not in DRS_AUTOMATION_LEVELS:
            raise ValidationError(
                "invalid automation level. it should be one of manual, "
                "partiallyAutomated or fullyAutomated"
            )
        config.defaultVmBehavior = getattr(vim.cluster.DrsConfigInfo.DrsBehavior, level)
    return config


def drs_sections(config: Optional[vim.cluster.DrsConfigInfo]) -> List[Dict[str, Any]]:
    if config is None or not config.enabled:
        return []
    section = {
        "enable_vm_automation_override": bool(config.enableVmBehaviorOverrides),
        "migration_threshold": config.vmotionRate,
    }
    if config.defaultVmBehavior is not None:
        section["default_automation_level"] = str(config.defaultVmBehavior)
    return [section]


# Cluster HA

def das_config(sections: List[Dict[str, Any]]) -> Optional[vim.cluster.DasConfigInfo]:
    section = single_section("ha", sections)
    if section is None:
        return None

    config = vim.cluster.DasConfigInfo()
    config.enabled = True

    if "vm_monitoring" in section:
        if section["vm_monitoring"] not in HA_VM_MONITORING:
            raise ValidationError(
                "invalid vm monitoring value. it should be one of vmAndAppMonitoring, "
                "vmMonitoringOnly or vmMonitoringDisabled"
            )
        config.vmMonitoring = section["vm_monitoring"]
    if "host_monitoring" in section:
        if section["host_monitoring"] not in HA_HOST_MONITORING:
            raise ValidationError(
                "invalid host monitoring value. it should be one of enabled or disabled"
            )
        config.hostMonitoring = section["host_monitoring"]
    if "admission_control_enabled" in section:
        config.admissionControlEnabled = section["admission_control_enabled"]
    return config


def ha_sections(config: Optional[vim.cluster.DasConfigInfo]) -> List[Dict[str, Any]]:
    if config is None or not config.enabled:
        return []
    section = {"admission_control_enabled": bool(config.admissionControlEnabled)}
    if config.hostMonitoring is not None:
        section["host_monitoring"] = config.hostMonitoring
    if config.vmMonitoring is not None:
        section["vm_monitoring"] = config.vmMonitoring
    return [section]


def cluster_config_spec(drs: List[Dict[str, Any]], ha: List[Dict[str, Any]]) -> vim.cluster.ConfigSpecEx:
    """Incremental cluster reconfiguration spec for the declared facets"""
    spec = vim.cluster.ConfigSpecEx()
    spec.drsConfig = drs_config(drs)
    spec.dasConfig = das_config(ha)
    logger.debug("Translated cluster configuration", spec=str(spec))
    return spec


# Resource pool CPU / memory allocation

def parse_shares(value: str) -> vim.SharesInfo:
    """Translate a shares level name or custom share count"""
    shares = vim.SharesInfo()
    if value in SHARES_LEVELS:
        shares.level = getattr(vim.SharesInfo.Level, value)
        shares.shares = 0
    elif _CUSTOM_SHARES.fullmatch(value):
        shares.level = vim.SharesInfo.Level.custom
        shares.shares = int(value)
    else:
        raise ValidationError(
            f"invalid shares value '{value}'. it should be one of low, normal, high "
            f"or a non-negative integer for a custom level"
        )
    return shares


def default_allocation() -> vim.ResourceAllocationInfo:
    """Allocation vCenter assigns to a pool when nothing is requested"""
    info = vim.ResourceAllocationInfo()
    info.shares = parse_shares("normal")
    info.reservation = 0
    info.limit = UNLIMITED
    info.expandableReservation = True
    return info


def allocation_info(name: str, sections: List[Dict[str, Any]],
                    complete: bool = False) -> vim.ResourceAllocationInfo:
    """Allocation for one facet.

    With ``complete`` unset sub-fields get vCenter's defaults, as pool
    creation needs a full spec. Otherwise they stay unset and an update
    leaves them unchanged.
    """
    section = single_section(name, sections)
    info = default_allocation() if complete else vim.ResourceAllocationInfo()
    if section is None:
        return info

    if "shares" in section:
        info.shares = parse_shares(section["shares"])
    if "reservation" in section:
        if section["reservation"] < 0:
            raise ValidationError(f"{name} reservation must not be negative")
        info.reservation = section["reservation"]
    if "limit" in section:
        if section["limit"] < 0:
            raise ValidationError(f"{name} limit must not be negative")
        info.limit = section["limit"] or UNLIMITED
    if "expandable_reservation" in section:
        info.expandableReservation = section["expandable_reservation"]
    return info


def allocation_sections(info: Optional[vim.ResourceAllocationInfo]) -> List[Dict[str, Any]]:
    if info is None:
        return []
    section = {
        "reservation": info.reservation or 0,
        "limit": 0 if info.limit is None or info.limit < 0 else info.limit,
        "expandable_reservation": bool(info.expandableReservation),
    }
    if info.shares is not None:
        if info.shares.level == vim.SharesInfo.Level.custom:
            section["shares"] = str(info.shares.shares)
        else:
            section["shares"] = str(info.shares.level)
    return [section]


def resource_config_spec(cpu: List[Dict[str, Any]], memory: List[Dict[str, Any]],
                         complete: bool = False) -> vim.ResourceConfigSpec:
    spec = vim.ResourceConfigSpec()
    spec.cpuAllocation = allocation_info("cpu", cpu, complete=complete)
    spec.memoryAllocation = allocation_info("memory", memory, complete=complete)
    logger.debug("Translated resource allocation", spec=str(spec))
    return spec
