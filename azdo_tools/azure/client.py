from typing import Dict, List, Optional
from azure.devops.connection import Connection
from azure.devops.v7_1.work.models import TeamContext
from msrest.authentication import BasicAuthentication
from loguru import logger

from ..models.entities import BuildPipeline, DeployPhase, Iteration, ReleasePipeline, ReleaseStage, WorkItemRef

CLOSED_STATES = ("Done", "Closed")


def escape_wiql(value: str) -> str:
    """Escapa aspas simples para uso em literais WIQL"""
    return value.replace("'", "''")


class AzureDevOpsClient:
    """Cliente para integração com o Azure DevOps"""

    def __init__(self, organization: str, project: str, token: str, team: Optional[str] = None):
        """
        Inicializa o cliente do Azure DevOps

        A autenticação é HTTP Basic com usuário vazio e o PAT como senha.

        Args:
            organization: Nome da organização
            project: Nome do projeto
            token: Token de acesso pessoal (PAT)
            team: Nome do time (None usa o time padrão do projeto)
        """
        self.organization = organization
        self.project = project
        self.team = team
        credentials = BasicAuthentication('', token)
        self.connection = Connection(
            base_url=f"https://dev.azure.com/{organization}",
            creds=credentials
        )
        self._build_client = None
        self._release_client = None
        self._task_agent_client = None
        self._work_client = None
        self._wit_client = None

        logger.info(f"Cliente Azure DevOps inicializado para {organization}/{project}")

    @property
    def build_client(self):
        if self._build_client is None:
            self._build_client = self.connection.clients.get_build_client()
        return self._build_client

    @property
    def release_client(self):
        if self._release_client is None:
            self._release_client = self.connection.clients.get_release_client()
        return self._release_client

    @property
    def task_agent_client(self):
        if self._task_agent_client is None:
            self._task_agent_client = self.connection.clients.get_task_agent_client()
        return self._task_agent_client

    @property
    def work_client(self):
        if self._work_client is None:
            self._work_client = self.connection.clients.get_work_client()
        return self._work_client

    @property
    def wit_client(self):
        if self._wit_client is None:
            self._wit_client = self.connection.clients.get_work_item_tracking_client()
        return self._wit_client

    def get_build_definitions(self) -> List[BuildPipeline]:
        """
        Obtém todas as definições de build do projeto

        Returns:
            List[BuildPipeline]: Definições com o nome do agent pool, quando houver
        """
        definitions = self.build_client.get_definitions(project=self.project, include_all_properties=True)
        pipelines = []
        for definition in definitions:
            queue = definition.queue
            pool = queue.pool if queue else None
            pipelines.append(BuildPipeline(
                id=definition.id,
                name=definition.name,
                agent_pool_name=pool.name if pool else None
            ))
        logger.info(f"Obtidas {len(pipelines)} definições de build do projeto {self.project}")
        return pipelines

    def get_release_definitions(self) -> List[ReleasePipeline]:
        """
        Obtém todas as definições de release com os estágios expandidos

        Returns:
            List[ReleasePipeline]: Definições com estágios e fases de deploy
        """
        definitions = self.release_client.get_release_definitions(project=self.project, expand="environments")
        pipelines = []
        for definition in definitions:
            stages = []
            for environment in definition.environments or []:
                # O SDK tipa deployPhases como [object]: cada fase chega como dict
                phases = [
                    DeployPhase(
                        name=phase.get("name"),
                        phase_type=str(phase.get("phaseType")),
                        queue_id=(phase.get("deploymentInput") or {}).get("queueId")
                    )
                    for phase in environment.deploy_phases or []
                ]
                stages.append(ReleaseStage(name=environment.name, deploy_phases=phases))
            pipelines.append(ReleasePipeline(id=definition.id, name=definition.name, stages=stages))
        logger.info(f"Obtidas {len(pipelines)} definições de release do projeto {self.project}")
        return pipelines

    def get_agent_pool_names(self) -> Dict[int, str]:
        """
        Obtém o nome do agent pool de cada fila de agentes do projeto

        Returns:
            Dict[int, str]: Nome do pool indexado pelo id da fila
        """
        pools = {}
        for queue in self.task_agent_client.get_agent_queues(project=self.project):
            pools[queue.id] = queue.pool.name if queue.pool else queue.name
        logger.info(f"Obtidas {len(pools)} filas de agentes do projeto {self.project}")
        return pools

    def get_team_iterations(self) -> List[Iteration]:
        """
        Obtém as iterações do time

        Returns:
            List[Iteration]: Iterações com nome e caminho
        """
        team_context = TeamContext(project=self.project, team=self.team)
        iterations = [
            Iteration(id=iteration.id, name=iteration.name, path=iteration.path)
            for iteration in self.work_client.get_team_iterations(team_context)
        ]
        logger.info(f"Obtidas {len(iterations)} iterações do time {self.team or 'padrão'}")
        return iterations

    def query_unfinished_work_items(self, iteration_path: str) -> List[WorkItemRef]:
        """
        Busca os work items não finalizados de uma iteração

        Args:
            iteration_path: Caminho da iteração

        Returns:
            List[WorkItemRef]: IDs dos work items que não estão Done nem Closed
        """
        excluded = " ".join(f"AND [System.State] <> '{state}'" for state in CLOSED_STATES)
        wiql = f"""
        SELECT [System.Id]
        FROM WorkItems
        WHERE [System.TeamProject] = '{escape_wiql(self.project)}'
        AND [System.IterationPath] = '{escape_wiql(iteration_path)}'
        {excluded}
        """

        results = self.wit_client.query_by_wiql({"query": wiql}).work_items or []
        work_items = [WorkItemRef(id=item.id) for item in results]
        logger.info(f"Encontrados {len(work_items)} work items não finalizados em {iteration_path}")
        return work_items

    def update_iteration_path(self, work_item_id: int, iteration_path: str) -> None:
        """
        Move um work item para outra iteração

        Args:
            work_item_id: ID do work item
            iteration_path: Caminho da iteração de destino
        """
        operations = [{
            "op": "add",
            "path": "/fields/System.IterationPath",
            "value": iteration_path
        }]
        self.wit_client.update_work_item(operations, work_item_id)
        logger.debug(f"Work item {work_item_id} movido para {iteration_path}")
