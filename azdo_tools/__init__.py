"""
Automação do Azure DevOps

Este pacote reúne duas ferramentas de linha de comando independentes: a auditoria
dos agent pools configurados nos pipelines de build e release, e a migração dos
work items não finalizados de uma sprint para outra.
"""

__version__ = "1.0.0"
