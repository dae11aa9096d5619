"""
Install plan model — what the operator asked for.

Chosen once from the menu and frozen for the rest of the run.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

Target = Literal["panel", "agent", "both", "phpmyadmin"]
WebServer = Literal["nginx", "apache"]

# Menu number → target.  The menu order is part of the operator contract.
MENU_TARGETS: dict[str, Target] = {
    "1": "panel",
    "2": "agent",
    "3": "both",
    "4": "phpmyadmin",
}


class InstallPlan(BaseModel):
    """Targets, web server and optional extras for a single run."""

    model_config = ConfigDict(frozen=True)

    target: Target
    webserver: WebServer = "nginx"
    domain: str = ""
    email: str = ""                  # Let's Encrypt contact, panel admin login
    tls: bool = True
    agent_deploy_command: str = ""   # pasted `wings configure ...` command, may be empty

    @property
    def installs_panel(self) -> bool:
        return self.target in ("panel", "both")

    @property
    def installs_agent(self) -> bool:
        return self.target in ("agent", "both")

    @property
    def needs_webserver(self) -> bool:
        """Whether a web server is installed or already serves the panel."""
        return self.target in ("panel", "both", "phpmyadmin")
