"""Domain services: tasks and organizations."""

from taskhub.services.organizations import OrganizationManager, save_organization
from taskhub.services.tasks import TaskManager

__all__ = ["OrganizationManager", "TaskManager", "save_organization"]
