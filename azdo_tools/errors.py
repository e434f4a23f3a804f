"""
Exceções das ferramentas de automação do Azure DevOps.

Erros de transporte/API vindos do SDK do Azure DevOps não são encapsulados:
eles sobem até o limite de execução do comando, que os registra.
"""
from typing import Optional, Sequence


class AzdoToolsError(Exception):
    """Erro base das ferramentas"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(AzdoToolsError):
    """
    Configuração ausente ou inválida.

    Attributes:
        field: Nome do campo de configuração com problema
        sources: Fontes consultadas na resolução do campo
    """

    def __init__(self, field: str, sources: Sequence[str] = (), message: Optional[str] = None):
        self.field = field
        self.sources = list(sources)
        if message is None:
            checked = ", ".join(self.sources) if self.sources else "nenhuma fonte"
            message = f"Configuração obrigatória '{field}' não encontrada (fontes verificadas: {checked})"
        super().__init__(message)


class SprintNotFoundError(AzdoToolsError):
    """Sprint não encontrada entre as iterações do time"""

    def __init__(self, sprint_name: str, team: Optional[str] = None):
        self.sprint_name = sprint_name
        self.team = team
        owner = f"do time '{team}'" if team else "do time padrão do projeto"
        super().__init__(f"Sprint '{sprint_name}' não encontrada nas iterações {owner}")
