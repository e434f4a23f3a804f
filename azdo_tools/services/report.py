from datetime import datetime
from pathlib import Path
from typing import List, Optional
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text
import openpyxl
from openpyxl.styles import PatternFill, Border, Side, Alignment, Font
from openpyxl.utils import get_column_letter

from ..models.entities import AuditResult, MigrationResult, PipelineKind, PoolStatus

class ReportGenerator:
    """Serviço responsável pela exibição e geração de relatórios"""

    def __init__(self, console: Optional[Console] = None, output_dir: Optional[str] = None):
        """
        Inicializa o gerador de relatórios

        Args:
            console: Console rich usado na exibição
            output_dir: Diretório de saída dos arquivos (None não gera arquivos)
        """
        self.console = console or Console()
        self.output_dir = Path(output_dir) if output_dir else None
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        if self.output_dir:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        self.excel_colors = {
            'header': PatternFill(start_color='FF6B00', end_color='FF6B00', fill_type='solid'),  # Laranja
            PoolStatus.CONFIGURED: PatternFill(start_color='B3FFB3', end_color='B3FFB3', fill_type='solid'),  # Verde claro
            PoolStatus.NO_POOL: PatternFill(start_color='FFB3B3', end_color='FFB3B3', fill_type='solid'),     # Vermelho claro
            PoolStatus.NO_AGENT_JOBS: PatternFill(start_color='FFFFB3', end_color='FFFFB3', fill_type='solid')  # Amarelo claro
        }
        self.status_styles = {
            PoolStatus.CONFIGURED: "green",
            PoolStatus.NO_POOL: "red",
            PoolStatus.NO_AGENT_JOBS: "yellow"
        }

    # Auditoria de pipelines

    def show_audit(self, result: AuditResult) -> None:
        """Exibe o resultado da auditoria no console"""
        for kind, title in ((PipelineKind.BUILD, "Pipelines de Build"), (PipelineKind.RELEASE, "Pipelines de Release")):
            entries = result.get_entries_by_kind(kind)
            if not entries:
                continue
            table = Table(title=title)
            table.add_column("Pipeline")
            if kind == PipelineKind.RELEASE:
                table.add_column("Estágio")
            table.add_column("Agent Pool")
            for entry in entries:
                pool = Text(entry.description, style=self.status_styles[entry.status])
                name = escape(entry.pipeline)
                row = [name, escape(entry.stage or "-"), pool] if kind == PipelineKind.RELEASE else [name, pool]
                table.add_row(*row)
            self.console.print(table)

        if result.filter_active:
            self.console.print(
                f"Filtro de build: {result.matched_build_definitions} de "
                f"{result.total_build_definitions} definições selecionadas"
            )

    def _generate_audit_markdown(self, result: AuditResult) -> str:
        """Gera o conteúdo do relatório de auditoria em Markdown"""
        report = []
        report.append("# Relatório de Auditoria de Agent Pools")
        report.append("")
        report.append(f"- **Gerado em:** {datetime.now().strftime('%d/%m/%Y %H:%M')}")
        if result.filter_active:
            report.append(
                f"- **Definições de build selecionadas:** "
                f"{result.matched_build_definitions} de {result.total_build_definitions}"
            )
        report.append("")

        builds = result.get_entries_by_kind(PipelineKind.BUILD)
        if builds:
            report.append("## Pipelines de Build")
            report.append("")
            report.append("| Pipeline | Agent Pool |")
            report.append("|----------|------------|")
            for entry in builds:
                report.append(f"| {entry.pipeline} | {entry.description} |")
            report.append("")

        releases = result.get_entries_by_kind(PipelineKind.RELEASE)
        if releases:
            report.append("## Pipelines de Release")
            report.append("")
            report.append("| Pipeline | Estágio | Agent Pool |")
            report.append("|----------|---------|------------|")
            for entry in releases:
                report.append(f"| {entry.pipeline} | {entry.stage or '-'} | {entry.description} |")
            report.append("")

        return "\n".join(report)

    def _generate_audit_excel(self, result: AuditResult, path: Path) -> None:
        """Gera a planilha de auditoria"""
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Auditoria"

        headers = ["Tipo", "Pipeline", "Estágio", "Agent Pool", "Situação"]
        self._write_header(ws, headers)

        thin = Side(style='thin')
        for row, entry in enumerate(result.entries, start=2):
            values = [entry.kind.value, entry.pipeline, entry.stage or "-", entry.pool_name or "-", entry.status.value]
            for col, value in enumerate(values, start=1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = Border(left=thin, right=thin, top=thin, bottom=thin)
            ws.cell(row=row, column=len(headers)).fill = self.excel_colors[entry.status]

        wb.save(str(path))

    def generate_audit(self, result: AuditResult) -> List[Path]:
        """
        Gera os arquivos do relatório de auditoria

        Returns:
            List[Path]: Arquivos gerados (vazia se não houver diretório de saída)
        """
        if not self.output_dir:
            return []

        markdown_path = self.output_dir / f"auditoria_pipelines_{self.timestamp}.md"
        markdown_path.write_text(self._generate_audit_markdown(result), encoding='utf-8')
        logger.info(f"Relatório Markdown gerado em {markdown_path}")

        excel_path = self.output_dir / f"auditoria_pipelines_{self.timestamp}.xlsx"
        self._generate_audit_excel(result, excel_path)
        logger.info(f"Relatório Excel gerado em {excel_path}")

        return [markdown_path, excel_path]

    # Migração de sprint

    def show_migration(self, result: MigrationResult) -> None:
        """Exibe o resumo da migração no console"""
        table = Table(title=f"Migração {result.source_sprint} -> {result.destination_sprint}")
        table.add_column("Item")
        table.add_column("Valor")
        for label, value in self._migration_summary(result):
            table.add_row(label, value)
        self.console.print(table)

    @staticmethod
    def _migration_summary(result: MigrationResult) -> List[tuple]:
        summary = [
            ("Origem", result.source_path),
            ("Destino", result.destination_path),
            ("Encontrados", str(result.found)),
            ("Movidos", str(result.moved)),
            ("Falhas", ", ".join(map(str, result.failed_ids)) or "-"),
            ("Lotes", ", ".join(map(str, result.batch_sizes)) or "-"),
        ]
        if result.dry_run:
            summary.append(("Simulação", "sim"))
        return summary

    def _generate_migration_markdown(self, result: MigrationResult) -> str:
        """Gera o conteúdo do relatório de migração em Markdown"""
        report = []
        report.append(f"# Relatório de Migração - {result.source_sprint} para {result.destination_sprint}")
        report.append("")
        report.append("| Item | Valor |")
        report.append("|------|-------|")
        for label, value in self._migration_summary(result):
            report.append(f"| {label} | {value} |")
        report.append("")
        return "\n".join(report)

    def _generate_migration_excel(self, result: MigrationResult, path: Path) -> None:
        """Gera a planilha de migração"""
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Migração"

        self._write_header(ws, ["Item", "Valor"])
        for row, (label, value) in enumerate(self._migration_summary(result), start=2):
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=row, column=2, value=value)

        wb.save(str(path))

    def generate_migration(self, result: MigrationResult) -> List[Path]:
        """
        Gera os arquivos do relatório de migração

        Returns:
            List[Path]: Arquivos gerados (vazia se não houver diretório de saída)
        """
        if not self.output_dir:
            return []

        name = result.source_sprint.replace(' ', '_')
        markdown_path = self.output_dir / f"migracao_{name}_{self.timestamp}.md"
        markdown_path.write_text(self._generate_migration_markdown(result), encoding='utf-8')
        logger.info(f"Relatório Markdown gerado em {markdown_path}")

        excel_path = self.output_dir / f"migracao_{name}_{self.timestamp}.xlsx"
        self._generate_migration_excel(result, excel_path)
        logger.info(f"Relatório Excel gerado em {excel_path}")

        return [markdown_path, excel_path]

    def _write_header(self, ws, headers: List[str]) -> None:
        """Escreve o cabeçalho da planilha com largura fixa nas colunas"""
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = Font(bold=True, color='FFFFFF')
            cell.fill = self.excel_colors['header']
            cell.alignment = Alignment(horizontal='center')
            ws.column_dimensions[get_column_letter(col)].width = 30
