import json
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from ..errors import ConfigError

PAT_ENV_VAR = "AZDO_PAT"
DEFAULT_CONFIG_FILE = Path("config.json")


class PatternOverride(str, Enum):
    """Estado do filtro de pipelines informado na linha de comando"""
    UNSET = "unset"
    EMPTY = "empty"
    PROVIDED = "provided"


class CliArgs(BaseModel):
    """Argumentos recebidos pela linha de comando

    Apenas os campos efetivamente informados entram em ``model_fields_set``,
    o que permite distinguir uma lista vazia explícita de uma lista omitida.
    """

    organization_name: Optional[str] = None
    project_name: Optional[str] = None
    pat: Optional[str] = None
    build_pipeline_patterns: Optional[List[str]] = None
    team_name: Optional[str] = None

    def patterns_override(self) -> PatternOverride:
        """Retorna o estado do filtro de pipelines informado"""
        if "build_pipeline_patterns" not in self.model_fields_set or self.build_pipeline_patterns is None:
            return PatternOverride.UNSET
        if not self.build_pipeline_patterns:
            return PatternOverride.EMPTY
        return PatternOverride.PROVIDED


class ConfigFile(BaseModel):
    """Conteúdo do arquivo de configuração JSON"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    organization_name: Optional[str] = Field(default=None, alias="OrganizationName")
    project_name: Optional[str] = Field(default=None, alias="ProjectName")
    pat: Optional[str] = Field(default=None, alias="Pat")
    build_pipeline_patterns: Optional[List[str]] = Field(default=None, alias="BuildPipelinePatterns")
    team_name: Optional[str] = Field(default=None, alias="TeamName")


class Settings(BaseModel):
    """Configuração efetiva de uma execução"""

    model_config = ConfigDict(frozen=True)

    organization_name: str
    project_name: str
    personal_access_token: SecretStr
    build_pipeline_patterns: Optional[List[str]] = None
    team_name: Optional[str] = None

    @property
    def organization_url(self) -> str:
        """URL base da organização no Azure DevOps"""
        return f"https://dev.azure.com/{self.organization_name}"


def parse_patterns(raw: Optional[str]) -> Optional[List[str]]:
    """
    Converte a lista de padrões separada por vírgulas recebida na CLI

    Args:
        raw: Texto informado (``None`` quando a opção não foi usada)

    Returns:
        Optional[List[str]]: ``None`` se omitido, lista (possivelmente vazia) caso contrário
    """
    if raw is None:
        return None
    return [p.strip() for p in raw.split(",") if p.strip()]


def first_non_empty(*candidates: Optional[str]) -> Optional[str]:
    """Retorna o primeiro candidato que não seja nulo nem vazio"""
    for candidate in candidates:
        if candidate is not None and candidate.strip():
            return candidate
    return None


def load_config_file(path: Optional[Path]) -> ConfigFile:
    """
    Carrega o arquivo de configuração

    Um arquivo ausente não é erro: todas as fontes restantes continuam valendo.

    Args:
        path: Caminho do arquivo JSON

    Returns:
        ConfigFile: Conteúdo do arquivo (vazio quando não existe)
    """
    if path is None or not path.exists():
        logger.info(f"Arquivo de configuração {path} não encontrado, usando apenas CLI e ambiente")
        return ConfigFile()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(str(path), message=f"Erro ao carregar arquivo {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(str(path), message=f"Arquivo {path} deve conter um objeto JSON")

    try:
        return ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(str(path), message=f"Arquivo {path} inválido: {e}") from e


def resolve_settings(cli_args: CliArgs, config_file: ConfigFile, env_vars: Mapping[str, str]) -> Settings:
    """
    Resolve a configuração efetiva a partir das três fontes

    Prioridade por campo: argumento da CLI, campo do arquivo de configuração
    e, somente para o token, a variável de ambiente AZDO_PAT.

    Args:
        cli_args: Argumentos da linha de comando
        config_file: Conteúdo do arquivo de configuração
        env_vars: Variáveis de ambiente

    Returns:
        Settings: Configuração resolvida

    Raises:
        ConfigError: Se organização, projeto ou token não forem resolvidos
    """
    organization = first_non_empty(cli_args.organization_name, config_file.organization_name)
    if organization is None:
        raise ConfigError(
            "organization_name",
            ["CLI --organization-name", "arquivo de configuração (OrganizationName)"],
        )

    project = first_non_empty(cli_args.project_name, config_file.project_name)
    if project is None:
        raise ConfigError(
            "project_name",
            ["CLI --project-name", "arquivo de configuração (ProjectName)"],
        )

    token = first_non_empty(cli_args.pat, config_file.pat, env_vars.get(PAT_ENV_VAR))
    if token is None:
        raise ConfigError(
            "personal_access_token",
            ["CLI --pat", "arquivo de configuração (Pat)", f"variável de ambiente {PAT_ENV_VAR}"],
        )

    override = cli_args.patterns_override()
    if override is PatternOverride.UNSET:
        patterns = config_file.build_pipeline_patterns
    else:
        patterns = list(cli_args.build_pipeline_patterns)
    logger.debug(f"Filtro de pipelines: {override.value} -> {patterns}")

    return Settings(
        organization_name=organization,
        project_name=project,
        personal_access_token=token,
        build_pipeline_patterns=patterns,
        team_name=first_non_empty(cli_args.team_name, config_file.team_name),
    )
