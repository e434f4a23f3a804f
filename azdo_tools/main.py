import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import typer
from loguru import logger
from rich.console import Console

from azdo_tools.errors import AzdoToolsError
from azdo_tools.models.config import (
    DEFAULT_CONFIG_FILE,
    CliArgs,
    Settings,
    load_config_file,
    parse_patterns,
    resolve_settings,
)
from azdo_tools.azure.client import AzureDevOpsClient
from azdo_tools.services.audit import PipelineAuditor
from azdo_tools.services.migration import SprintMigrator
from azdo_tools.services.report import ReportGenerator

app = typer.Typer(help="Automação do Azure DevOps - auditoria de pipelines e migração de sprints")
console = Console()

def configurar_logger(output_dir: Path = Path("logs")):
    """Configura o sistema de logs"""
    output_dir.mkdir(exist_ok=True)

    logger.remove()  # Remove handlers padrão
    logger.add(
        output_dir / "azdo_tools_{time}.log",
        rotation="1 day",
        retention="7 days",
        level="INFO",
        encoding='utf-8',
        diagnose=False
    )
    logger.add(lambda msg: console.print(msg, style="blue", markup=False, highlight=False, end=""), level="INFO", diagnose=False)

@contextmanager
def run_boundary(nome: str) -> Iterator[None]:
    """
    Limite de execução de um comando

    Qualquer erro é registrado com detalhes e encerra com código 1; a mensagem
    de finalização é sempre registrada, com ou sem sucesso.

    Args:
        nome: Nome da operação, usado nas mensagens de log
    """
    logger.info(f"Iniciando {nome}")
    try:
        yield
    except typer.Exit:
        raise
    except AzdoToolsError as e:
        logger.error(f"Erro durante {nome}: {e.message}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception(f"Erro durante {nome}: {str(e)}")
        raise typer.Exit(1)
    finally:
        logger.info(f"{nome} finalizada")

def carregar_configuracao(cli_args: CliArgs, config_file: Optional[Path]) -> Settings:
    """
    Resolve a configuração da execução

    Args:
        cli_args: Argumentos informados na linha de comando
        config_file: Caminho do arquivo de configuração JSON

    Returns:
        Settings: Configuração efetiva
    """
    logger.info(f"Carregando configurações de {config_file}...")
    settings = resolve_settings(cli_args, load_config_file(config_file), os.environ)
    logger.info(f"Usando organização {settings.organization_name} e projeto {settings.project_name}")
    return settings

def montar_cli_args(**values) -> CliArgs:
    """Cria os argumentos da CLI somente com as opções informadas"""
    return CliArgs(**{name: value for name, value in values.items() if value is not None})

def criar_cliente(settings: Settings) -> AzureDevOpsClient:
    logger.info("Conectando ao Azure DevOps...")
    return AzureDevOpsClient(
        organization=settings.organization_name,
        project=settings.project_name,
        token=settings.personal_access_token.get_secret_value(),
        team=settings.team_name
    )

@app.command("auditar-pipelines")
def auditar_pipelines(
    organization_name: Optional[str] = typer.Option(None, "--organization-name", help="Nome da organização"),
    project_name: Optional[str] = typer.Option(None, "--project-name", help="Nome do projeto"),
    pat: Optional[str] = typer.Option(None, "--pat", help="Token de acesso pessoal (ou AZDO_PAT)"),
    build_pipeline_patterns: Optional[str] = typer.Option(
        None,
        "--build-pipeline-patterns",
        help="Padrões glob separados por vírgula para os pipelines de build; vazio desativa o filtro"
    ),
    config_file: Path = typer.Option(DEFAULT_CONFIG_FILE, "--config-file", help="Arquivo de configuração JSON", dir_okay=False),
    skip_builds: bool = typer.Option(False, "--skip-builds", help="Não audita pipelines de build"),
    skip_releases: bool = typer.Option(False, "--skip-releases", help="Não audita pipelines de release"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Diretório para os relatórios Markdown e Excel", file_okay=False)
):
    """Audita os agent pools configurados nos pipelines de build e release"""
    configurar_logger()
    with run_boundary("auditoria de pipelines"):
        cli_args = montar_cli_args(
            organization_name=organization_name,
            project_name=project_name,
            pat=pat,
            build_pipeline_patterns=parse_patterns(build_pipeline_patterns)
        )
        settings = carregar_configuracao(cli_args, config_file)
        client = criar_cliente(settings)

        auditor = PipelineAuditor(client, settings.build_pipeline_patterns)
        result = auditor.audit(include_builds=not skip_builds, include_releases=not skip_releases)

        report_generator = ReportGenerator(console, output_dir)
        report_generator.show_audit(result)
        report_generator.generate_audit(result)

@app.command("migrar-sprint")
def migrar_sprint(
    source_sprint_name: str = typer.Option(..., "--source-sprint-name", help="Nome da sprint de origem"),
    destination_sprint_name: str = typer.Option(..., "--destination-sprint-name", help="Nome da sprint de destino"),
    organization_name: Optional[str] = typer.Option(None, "--organization-name", help="Nome da organização"),
    project_name: Optional[str] = typer.Option(None, "--project-name", help="Nome do projeto"),
    pat: Optional[str] = typer.Option(None, "--pat", help="Token de acesso pessoal (ou AZDO_PAT)"),
    team_name: Optional[str] = typer.Option(None, "--team-name", help="Time dono das iterações (padrão do projeto se omitido)"),
    config_file: Path = typer.Option(DEFAULT_CONFIG_FILE, "--config-file", help="Arquivo de configuração JSON", dir_okay=False),
    dry_run: bool = typer.Option(False, "--dry-run", help="Apenas lista os work items que seriam movidos"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Diretório para os relatórios Markdown e Excel", file_okay=False)
):
    """Move os work items não finalizados de uma sprint para outra"""
    configurar_logger()
    with run_boundary("migração de sprint"):
        cli_args = montar_cli_args(
            organization_name=organization_name,
            project_name=project_name,
            pat=pat,
            team_name=team_name
        )
        settings = carregar_configuracao(cli_args, config_file)
        client = criar_cliente(settings)

        migrator = SprintMigrator(client)
        result = migrator.migrate(source_sprint_name, destination_sprint_name, dry_run=dry_run)

        report_generator = ReportGenerator(console, output_dir)
        report_generator.show_migration(result)
        report_generator.generate_migration(result)

# Ferramentas independentes expostas como scripts próprios
audit_app = typer.Typer(help="Auditoria de agent pools dos pipelines")
audit_app.command()(auditar_pipelines)

migration_app = typer.Typer(help="Migração de work items entre sprints")
migration_app.command()(migrar_sprint)

if __name__ == "__main__":
    app()
