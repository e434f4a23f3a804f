from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field

AGENT_BASED_PHASE = "agentBasedDeployment"

class PipelineKind(str, Enum):
    """Tipos de pipeline auditados"""
    BUILD = "build"
    RELEASE = "release"

class PoolStatus(str, Enum):
    """Situação do agent pool de um pipeline ou estágio"""
    CONFIGURED = "configured"
    NO_POOL = "no pool configured"
    NO_AGENT_JOBS = "no agent-based jobs"

class BuildPipeline(BaseModel):
    """Definição de build"""
    id: Optional[int] = None
    name: str
    agent_pool_name: Optional[str] = None

class DeployPhase(BaseModel):
    """Fase de deploy de um estágio de release"""
    name: Optional[str] = None
    phase_type: str
    queue_id: Optional[int] = None

    @property
    def is_agent_based(self) -> bool:
        return self.phase_type == AGENT_BASED_PHASE

class ReleaseStage(BaseModel):
    """Estágio (environment) de uma definição de release"""
    name: str
    deploy_phases: List[DeployPhase] = Field(default_factory=list)

    def agent_phase(self) -> Optional[DeployPhase]:
        """Retorna a primeira fase baseada em agente, se houver"""
        return next((phase for phase in self.deploy_phases if phase.is_agent_based), None)

class ReleasePipeline(BaseModel):
    """Definição de release"""
    id: Optional[int] = None
    name: str
    stages: List[ReleaseStage] = Field(default_factory=list)

class Iteration(BaseModel):
    """Iteração (sprint) do time"""
    id: Optional[str] = None
    name: str
    path: str

class WorkItemRef(BaseModel):
    """Referência a um work item retornado por uma consulta WIQL"""
    id: int

class AuditEntry(BaseModel):
    """Linha do relatório de auditoria"""
    kind: PipelineKind
    pipeline: str
    stage: Optional[str] = None
    pool_name: Optional[str] = None
    status: PoolStatus

    @property
    def description(self) -> str:
        if self.status == PoolStatus.CONFIGURED:
            return self.pool_name
        return self.status.value

class AuditResult(BaseModel):
    """Resultado da auditoria de pipelines"""
    entries: List[AuditEntry] = Field(default_factory=list)
    total_build_definitions: int = 0
    matched_build_definitions: int = 0
    filter_active: bool = False

    def get_entries_by_kind(self, kind: PipelineKind) -> List[AuditEntry]:
        """Retorna as linhas de um tipo de pipeline"""
        return [entry for entry in self.entries if entry.kind == kind]

class MigrationResult(BaseModel):
    """Resultado da migração de work items entre sprints"""
    source_sprint: str
    destination_sprint: str
    source_path: str
    destination_path: str
    found: int = 0
    moved: int = 0
    failed_ids: List[int] = Field(default_factory=list)
    batch_sizes: List[int] = Field(default_factory=list)
    dry_run: bool = False
