"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from provisioner.core.models import HostProfile, InstallPlan, Credentials, StepResult
"""

from provisioner.core.models.credentials import Credentials
from provisioner.core.models.host import HostProfile, OSFamily
from provisioner.core.models.plan import MENU_TARGETS, InstallPlan, Target, WebServer
from provisioner.core.models.step import StepResult
from provisioner.core.models.template import GeneratedFile

__all__ = [
    "Credentials",
    "GeneratedFile",
    "HostProfile",
    "InstallPlan",
    "MENU_TARGETS",
    "OSFamily",
    "StepResult",
    "Target",
    "WebServer",
]
