"""Find-or-create resolution of the remote project and pipeline.

Lookup is by exact, case-sensitive name. The service does not enforce
unique pipeline names, so two runs racing on a brand-new datasource can each
create a pipeline; later runs then pick whichever the listing returns first.
"""

from __future__ import annotations

import json
import logging

import config
from cloud.client import ApiError
from ingestion.errors import ResolutionError
from ingestion.models import CloudService
from types_models import EmbeddingConfig, Pipeline, PipelineCreate, Project

logger = logging.getLogger(__name__)


class PipelineResolver:
    """Resolve datasource names to remote pipelines, creating them on demand."""

    def __init__(
        self,
        service: CloudService,
        *,
        embedding_config: EmbeddingConfig | None = None,
        pipeline_type: str = config.PIPELINE_TYPE,
    ) -> None:
        super().__init__()
        self._service = service
        self._embedding_config = embedding_config or EmbeddingConfig()
        self._pipeline_type = pipeline_type

    def _find_project(
        self, project_name: str, organization_id: str | None
    ) -> Project | None:
        try:
            projects = self._service.list_projects(project_name, organization_id)
        except ApiError as exc:
            raise ResolutionError(
                f"Could not list projects named '{project_name}': {exc}"
            ) from exc
        return next((p for p in projects if p.name == project_name), None)

    def resolve_project(
        self, project_name: str, organization_id: str | None = None
    ) -> Project:
        """Return the existing project called ``project_name``.

        Projects are never created here; a missing one is a configuration
        problem.
        """
        project = self._find_project(project_name, organization_id)
        if project is None:
            raise ResolutionError(f"Project '{project_name}' not found")
        logger.info("Project ID: %s", project.id)
        return project

    def resolve(self, project_id: str, datasource: str) -> Pipeline:
        """Return the pipeline named ``datasource``, creating it if absent.

        Raises:
            ResolutionError: listing or creation failed, or the service
                returned a pipeline without an identifier.
        """
        try:
            pipelines = self._service.list_pipelines(project_id)
        except ApiError as exc:
            raise ResolutionError(
                f"Could not list pipelines for project {project_id}: {exc}"
            ) from exc
        logger.info("Found %d pipelines", len(pipelines))

        pipeline = next((p for p in pipelines if p.name == datasource), None)
        if pipeline is None:
            logger.info("Pipeline '%s' not found. Creating a new pipeline.", datasource)
            request = PipelineCreate(
                name=datasource,
                pipeline_type=self._pipeline_type,
                embedding_config=self._embedding_config,
            )
            logger.debug(
                "Create pipeline request body: %s",
                json.dumps(request.model_dump(), indent=2),
            )
            try:
                pipeline = self._service.create_pipeline(project_id, request)
            except ApiError as exc:
                raise ResolutionError(
                    f"Failed to create pipeline '{datasource}': {exc}"
                ) from exc
            logger.info("Created new pipeline with ID: %s", pipeline.id)

        if not pipeline.id:
            raise ResolutionError(f"Failed to create or find pipeline: {datasource}")
        logger.info("Pipeline ID: %s", pipeline.id)
        return pipeline


__all__ = ["PipelineResolver"]
