import json
import pytest
from azdo_tools.errors import ConfigError
from azdo_tools.models.config import (
    CliArgs,
    ConfigFile,
    PatternOverride,
    first_non_empty,
    load_config_file,
    parse_patterns,
    resolve_settings,
)

@pytest.fixture
def config_file():
    """Fixture para um arquivo de configuração completo"""
    return ConfigFile(
        OrganizationName="org-arquivo",
        ProjectName="projeto-arquivo",
        Pat="pat-arquivo",
        BuildPipelinePatterns=["CI-*", "Deploy-*"]
    )

def test_cli_wins_over_config_file(config_file):
    """Testa que o argumento da CLI tem prioridade sobre o arquivo"""
    cli = CliArgs(organization_name="org-cli", project_name="projeto-cli", pat="pat-cli")

    settings = resolve_settings(cli, config_file, {"AZDO_PAT": "pat-env"})

    assert settings.organization_name == "org-cli"
    assert settings.project_name == "projeto-cli"
    assert settings.personal_access_token.get_secret_value() == "pat-cli"

def test_config_file_wins_over_environment(config_file):
    """Testa que o arquivo tem prioridade sobre a variável de ambiente"""
    settings = resolve_settings(CliArgs(), config_file, {"AZDO_PAT": "pat-env"})

    assert settings.organization_name == "org-arquivo"
    assert settings.personal_access_token.get_secret_value() == "pat-arquivo"

def test_environment_used_for_token_only():
    """Testa que a variável de ambiente só fornece o token"""
    cli = CliArgs(organization_name="org", project_name="projeto")

    settings = resolve_settings(cli, ConfigFile(), {"AZDO_PAT": "pat-env"})

    assert settings.personal_access_token.get_secret_value() == "pat-env"

def test_empty_cli_value_falls_back(config_file):
    """Testa que valores vazios na CLI usam o arquivo"""
    cli = CliArgs(organization_name="", project_name="   ")

    settings = resolve_settings(cli, config_file, {})

    assert settings.organization_name == "org-arquivo"
    assert settings.project_name == "projeto-arquivo"

def test_token_is_masked_in_repr(config_file):
    """Testa que o token não aparece na representação das configurações"""
    settings = resolve_settings(CliArgs(), config_file, {})

    assert "pat-arquivo" not in repr(settings)

@pytest.mark.parametrize(
    "cli, env, field",
    [
        (CliArgs(project_name="p", pat="t"), {}, "organization_name"),
        (CliArgs(organization_name="o", pat="t"), {}, "project_name"),
        (CliArgs(organization_name="o", project_name="p"), {}, "personal_access_token"),
        (CliArgs(organization_name="o", project_name="p"), {"AZDO_PAT": ""}, "personal_access_token"),
    ],
)
def test_missing_required_field(cli, env, field):
    """Testa que cada campo obrigatório ausente gera um erro próprio"""
    with pytest.raises(ConfigError) as exc_info:
        resolve_settings(cli, ConfigFile(), env)

    assert exc_info.value.field == field
    assert field in str(exc_info.value)
    assert exc_info.value.sources

def test_missing_token_lists_all_sources():
    """Testa que o erro de token lista as três fontes verificadas"""
    with pytest.raises(ConfigError) as exc_info:
        resolve_settings(CliArgs(organization_name="o", project_name="p"), ConfigFile(), {})

    assert any("AZDO_PAT" in source for source in exc_info.value.sources)
    assert len(exc_info.value.sources) == 3

def test_patterns_unset_fall_back_to_config_file(config_file):
    """Testa que padrões omitidos na CLI usam os do arquivo"""
    cli = CliArgs(pat="t")

    assert cli.patterns_override() == PatternOverride.UNSET
    settings = resolve_settings(cli, config_file, {})
    assert settings.build_pipeline_patterns == ["CI-*", "Deploy-*"]

def test_explicit_empty_patterns_disable_filter(config_file):
    """Testa que uma lista vazia explícita não usa os padrões do arquivo"""
    cli = CliArgs(build_pipeline_patterns=[])

    assert cli.patterns_override() == PatternOverride.EMPTY
    settings = resolve_settings(cli, config_file, {})
    assert settings.build_pipeline_patterns == []

def test_provided_patterns_win(config_file):
    """Testa que os padrões da CLI substituem os do arquivo"""
    cli = CliArgs(build_pipeline_patterns=["Nightly*"])

    assert cli.patterns_override() == PatternOverride.PROVIDED
    settings = resolve_settings(cli, config_file, {})
    assert settings.build_pipeline_patterns == ["Nightly*"]

def test_settings_are_immutable(config_file):
    """Testa que as configurações resolvidas não podem ser alteradas"""
    settings = resolve_settings(CliArgs(), config_file, {})

    with pytest.raises(Exception):
        settings.organization_name = "outra"

def test_parse_patterns():
    """Testa a conversão da lista de padrões da CLI"""
    assert parse_patterns(None) is None
    assert parse_patterns("") == []
    assert parse_patterns("CI-*, Deploy-* ,") == ["CI-*", "Deploy-*"]

def test_first_non_empty():
    """Testa a escolha do primeiro valor não vazio"""
    assert first_non_empty(None, "", " ", "a", "b") == "a"
    assert first_non_empty(None, "") is None

def test_load_config_file_missing(tmp_path):
    """Testa que um arquivo ausente não é erro"""
    config = load_config_file(tmp_path / "nao_existe.json")

    assert config.organization_name is None
    assert config.pat is None
    assert config.build_pipeline_patterns is None

def test_load_config_file(tmp_path):
    """Testa a leitura do arquivo de configuração"""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "OrganizationName": "org",
        "ProjectName": "projeto",
        "Pat": "pat",
        "BuildPipelinePatterns": ["CI-*"],
        "Outro": "ignorado"
    }), encoding="utf-8")

    config = load_config_file(path)

    assert config.organization_name == "org"
    assert config.project_name == "projeto"
    assert config.pat == "pat"
    assert config.build_pipeline_patterns == ["CI-*"]

def test_load_config_file_invalid_json(tmp_path):
    """Testa que JSON inválido gera erro de configuração"""
    path = tmp_path / "config.json"
    path.write_text("{ invalido", encoding="utf-8")

    with pytest.raises(ConfigError, match="Erro ao carregar arquivo"):
        load_config_file(path)

def test_load_config_file_wrong_type(tmp_path):
    """Testa que um campo com tipo inválido gera erro de configuração"""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"BuildPipelinePatterns": "CI-*"}), encoding="utf-8")

    with pytest.raises(ConfigError, match="inválido"):
        load_config_file(path)
