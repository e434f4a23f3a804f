from typing import Dict, List, Optional
from loguru import logger

from ..azure.client import AzureDevOpsClient
from ..models.entities import (
    AuditEntry,
    AuditResult,
    BuildPipeline,
    PipelineKind,
    PoolStatus,
    ReleasePipeline,
)
from .pattern_filter import PatternFilter


class PipelineAuditor:
    """Serviço responsável pela auditoria de agent pools dos pipelines"""

    def __init__(self, client: AzureDevOpsClient, patterns: Optional[List[str]] = None):
        """
        Inicializa o auditor

        Args:
            client: Cliente do Azure DevOps
            patterns: Padrões glob aplicados somente aos pipelines de build
        """
        self.client = client
        self.pattern_filter = PatternFilter(patterns)

    def audit(self, include_builds: bool = True, include_releases: bool = True) -> AuditResult:
        """
        Executa a auditoria

        Args:
            include_builds: Audita pipelines de build
            include_releases: Audita pipelines de release

        Returns:
            AuditResult: Linhas do relatório e contadores do filtro
        """
        result = AuditResult(filter_active=self.pattern_filter.active)

        if include_builds:
            definitions = self.client.get_build_definitions()
            included = self.pattern_filter.apply(definitions, key=lambda d: d.name)
            result.total_build_definitions = len(definitions)
            result.matched_build_definitions = len(included)
            result.entries.extend(self.audit_build(d) for d in included)

        if include_releases:
            releases = self.client.get_release_definitions()
            if releases:
                pool_names = self.client.get_agent_pool_names()
                for release in releases:
                    result.entries.extend(self.audit_release(release, pool_names))

        logger.info(f"Auditoria concluída com {len(result.entries)} linhas")
        return result

    @staticmethod
    def audit_build(definition: BuildPipeline) -> AuditEntry:
        """Gera a linha de auditoria de uma definição de build"""
        if not definition.agent_pool_name:
            logger.warning(f"Build '{definition.name}' sem agent pool configurado")
            return AuditEntry(kind=PipelineKind.BUILD, pipeline=definition.name, status=PoolStatus.NO_POOL)

        logger.info(f"Build '{definition.name}' usa o agent pool '{definition.agent_pool_name}'")
        return AuditEntry(
            kind=PipelineKind.BUILD,
            pipeline=definition.name,
            pool_name=definition.agent_pool_name,
            status=PoolStatus.CONFIGURED
        )

    @staticmethod
    def audit_release(definition: ReleasePipeline, pool_names: Dict[int, str]) -> List[AuditEntry]:
        """
        Gera uma linha de auditoria por estágio da definição de release

        Args:
            definition: Definição de release
            pool_names: Nome do pool por id de fila de agentes

        Returns:
            List[AuditEntry]: Linhas do relatório
        """
        if not definition.stages:
            logger.warning(f"Release '{definition.name}' não possui estágios: {PoolStatus.NO_AGENT_JOBS.value}")
            return [AuditEntry(
                kind=PipelineKind.RELEASE,
                pipeline=definition.name,
                stage=None,
                status=PoolStatus.NO_AGENT_JOBS
            )]

        entries = []
        for stage in definition.stages:
            phase = stage.agent_phase()
            if phase is None:
                status, pool_name = PoolStatus.NO_AGENT_JOBS, None
            else:
                pool_name = pool_names.get(phase.queue_id) if phase.queue_id is not None else None
                status = PoolStatus.CONFIGURED if pool_name else PoolStatus.NO_POOL

            if status == PoolStatus.CONFIGURED:
                logger.info(f"Release '{definition.name}' / estágio '{stage.name}' usa o agent pool '{pool_name}'")
            else:
                logger.warning(f"Release '{definition.name}' / estágio '{stage.name}': {status.value}")

            entries.append(AuditEntry(
                kind=PipelineKind.RELEASE,
                pipeline=definition.name,
                stage=stage.name,
                pool_name=pool_name,
                status=status
            ))
        return entries
