from typing import Iterator, List, Optional, Sequence, TypeVar
from loguru import logger

from ..azure.client import AzureDevOpsClient
from ..errors import SprintNotFoundError
from ..models.entities import Iteration, MigrationResult

# Limite de itens por lote aceito pela API do Azure DevOps
BATCH_SIZE = 200

T = TypeVar("T")


def chunked(items: Sequence[T], size: int = BATCH_SIZE) -> Iterator[List[T]]:
    """Divide a sequência em lotes de no máximo ``size`` itens"""
    if size <= 0:
        raise ValueError(f"Tamanho de lote inválido: {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def find_iteration(iterations: Sequence[Iteration], name: str, team: Optional[str] = None) -> Iteration:
    """
    Busca uma iteração pelo nome exato

    Raises:
        SprintNotFoundError: Se nenhuma iteração tiver esse nome
    """
    for iteration in iterations:
        if iteration.name == name:
            return iteration
    raise SprintNotFoundError(name, team)


class SprintMigrator:
    """Serviço responsável por mover work items não finalizados entre sprints"""

    def __init__(self, client: AzureDevOpsClient, batch_size: int = BATCH_SIZE):
        """
        Inicializa o migrador

        Args:
            client: Cliente do Azure DevOps
            batch_size: Quantidade máxima de work items por lote
        """
        self.client = client
        self.batch_size = batch_size

    def migrate(self, source_sprint: str, destination_sprint: str, dry_run: bool = False) -> MigrationResult:
        """
        Move os work items não finalizados da sprint de origem para a de destino

        Falhas em um work item são registradas e não interrompem os demais.

        Args:
            source_sprint: Nome da sprint de origem
            destination_sprint: Nome da sprint de destino
            dry_run: Apenas lista o que seria movido

        Returns:
            MigrationResult: Contagem de itens encontrados e movidos

        Raises:
            SprintNotFoundError: Se alguma das sprints não existir
        """
        iterations = self.client.get_team_iterations()
        source = find_iteration(iterations, source_sprint, self.client.team)
        destination = find_iteration(iterations, destination_sprint, self.client.team)
        logger.info(f"Origem: {source.path} | Destino: {destination.path}")

        result = MigrationResult(
            source_sprint=source.name,
            destination_sprint=destination.name,
            source_path=source.path,
            destination_path=destination.path,
            dry_run=dry_run
        )

        work_items = self.client.query_unfinished_work_items(source.path)
        result.found = len(work_items)
        if not work_items:
            logger.info(f"Nenhum work item não finalizado na sprint {source.name}")
            return result

        ids = [item.id for item in work_items]
        if dry_run:
            logger.info(f"Simulação: {len(ids)} work items seriam movidos para {destination.path}: {ids}")
            return result

        for number, batch in enumerate(chunked(ids, self.batch_size), start=1):
            logger.info(f"Processando lote {number} com {len(batch)} work items")
            result.batch_sizes.append(len(batch))
            for work_item_id in batch:
                try:
                    self.client.update_iteration_path(work_item_id, destination.path)
                    result.moved += 1
                except Exception as e:
                    logger.warning(f"Falha ao mover work item {work_item_id}: {e}")
                    result.failed_ids.append(work_item_id)

        logger.info(f"{result.moved} de {result.found} work items movidos para {destination.path}")
        return result
