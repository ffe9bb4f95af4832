"""Project management: create and remove projects, attach before/after updates."""

import logging
from typing import Optional

from donor_ledger.db.repository import LedgerStore
from donor_ledger.models.ledger import MediaType, Project, ProjectMedia
from donor_ledger.utils.ids import new_record_id

from .ledger_service import LedgerService, percent_of_goal

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, ledger: LedgerStore, ledger_service: Optional[LedgerService] = None):
        self.ledger = ledger
        self.ledger_service = ledger_service or LedgerService(ledger)

    def list_projects(self) -> list[Project]:
        return self.ledger_service.projects_with_raised()

    def add_project(self, name: str, description: str, goal: float) -> Project:
        """Create a project with nothing raised and no media."""
        project = Project(
            id=new_record_id("proj"),
            name=name.strip(),
            description=description.strip(),
            goal=goal,
        )
        self.ledger.projects.upsert(project)
        logger.info(f"Created project {project.id}: {project.name} (goal {project.goal:g})")
        return project

    def remove_project(self, project_id: str) -> None:
        """
        Delete a project. Its transactions and debits stay in the ledger.

        Raises:
            KeyError: Unknown project
        """
        if not self.ledger.projects.remove(project_id):
            raise KeyError(f"No project with id {project_id!r}")
        logger.info(f"Removed project {project_id}")

    def add_media_update(
        self,
        project_id: str,
        media_type: MediaType | str,
        before: str,
        after: str,
        description: str = "",
    ) -> ProjectMedia:
        """
        Attach a before/after update (image or video URLs, or story text).

        Raises:
            KeyError: Unknown project
            ValueError: Empty before/after content or unknown media type
        """
        if not before.strip() or not after.strip():
            raise ValueError("Both 'before' and 'after' content are required")
        project = self.ledger.projects.require(project_id)
        media = ProjectMedia(
            id=new_record_id("media"),
            type=media_type,
            before=before.strip(),
            after=after.strip(),
            description=description.strip(),
        )
        self.ledger.projects.upsert(project.model_copy(update={"media": project.media + [media]}))
        return media

    def progress(self, project: Project) -> float:
        """Percent of goal raised (ledger-recomputed), capped at 100."""
        return percent_of_goal(self.ledger_service.project_raised(project.id), project.goal)
