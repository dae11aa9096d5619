"""
Provisioning steps — one module per concern, assembled by ``build_steps``.

Order is fixed; the plan only decides which steps take part:

    baseline → dependencies → database → panel-fetch → panel-env →
    panel-setup → webserver → certificate → workers → agent → firewall
"""

from __future__ import annotations

from provisioner.core.engine.executor import Step
from provisioner.core.models.plan import InstallPlan
from provisioner.core.services.steps.agent import install_agent
from provisioner.core.services.steps.baseline import update_system
from provisioner.core.services.steps.certificates import request_certificate
from provisioner.core.services.steps.database import bootstrap_database
from provisioner.core.services.steps.dependencies import install_dependencies
from provisioner.core.services.steps.firewall import configure_firewall
from provisioner.core.services.steps.panel import fetch_panel, render_environment, setup_panel
from provisioner.core.services.steps.phpmyadmin import install_phpmyadmin
from provisioner.core.services.steps.webserver import configure_webserver
from provisioner.core.services.steps.workers import install_workers


def build_steps(plan: InstallPlan) -> list[Step]:
    """Ordered steps for ``plan``."""
    if plan.target == "phpmyadmin":
        return [Step("phpmyadmin", "Installing phpMyAdmin", install_phpmyadmin)]

    steps = [
        Step("baseline", "Updating system packages", update_system),
        Step("dependencies", "Installing dependencies", install_dependencies),
    ]
    if plan.installs_panel:
        steps += [
            Step("database", "Creating the panel database", bootstrap_database),
            Step("panel-fetch", "Downloading the panel", fetch_panel),
            Step("panel-env", "Writing the panel environment", render_environment),
            Step("panel-setup", "Running panel setup", setup_panel),
            Step("webserver", f"Configuring {plan.webserver}", configure_webserver),
        ]
    if plan.tls and plan.domain:
        steps.append(Step("certificate", "Requesting a TLS certificate", request_certificate))
    if plan.installs_panel:
        steps.append(Step("workers", "Installing the queue worker", install_workers))
    if plan.installs_agent:
        steps.append(Step("agent", "Installing Wings", install_agent))
    steps.append(Step("firewall", "Configuring the firewall", configure_firewall))
    return steps


__all__ = ["build_steps"]
