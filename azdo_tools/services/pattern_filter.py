from fnmatch import fnmatchcase
from typing import Callable, List, Optional, Sequence, TypeVar
from loguru import logger

T = TypeVar("T")


def should_include(name: str, patterns: Optional[Sequence[str]]) -> bool:
    """
    Verifica se um nome atende a algum padrão glob

    Sem padrões o filtro fica desativado e todo nome é incluído. A comparação
    ignora maiúsculas/minúsculas.

    Args:
        name: Nome do pipeline
        patterns: Padrões no estilo shell (``*``, ``?``, ``[...]``)

    Returns:
        bool: True se o nome deve ser incluído
    """
    if not patterns:
        return True
    lowered = name.lower()
    return any(fnmatchcase(lowered, pattern.lower()) for pattern in patterns)


class PatternFilter:
    """Filtro de nomes por padrões glob com contagem de correspondências"""

    def __init__(self, patterns: Optional[Sequence[str]] = None):
        self.patterns: List[str] = list(patterns or [])
        self.matched = 0
        self.total = 0

    @property
    def active(self) -> bool:
        return bool(self.patterns)

    def apply(self, items: Sequence[T], key: Callable[[T], str]) -> List[T]:
        """
        Filtra os itens pelo nome

        Args:
            items: Itens a filtrar
            key: Função que extrai o nome de cada item

        Returns:
            List[T]: Itens incluídos, na ordem original
        """
        included = [item for item in items if should_include(key(item), self.patterns)]
        self.total = len(items)
        self.matched = len(included)

        if self.active:
            logger.info(f"{self.matched} de {self.total} definições atendem aos padrões {self.patterns}")
            if self.matched == 0:
                logger.warning(f"Nenhuma definição atende aos padrões {self.patterns}")
        return included
