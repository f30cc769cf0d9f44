"""
Verdict Export

Write gate verdicts to files for the bookkeeping side of the business.

Formats:
- JSON: full verdicts with contributions and signals
- JSONL: one verdict per line
- CSV: one row per receipt, signal flags as columns
"""

from __future__ import annotations

import csv
import json
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger

from ..decision.gate import BatchResult, ReceiptVerdict

_SIGNAL_COLUMNS = [
    'has_clear_date',
    'has_clear_amount',
    'has_vendor_name',
    'has_po_or_boat_name',
    'has_line_items',
    'has_handwritten_text',
    'image_quality',
    'has_ambiguity',
]


class ExportFormat(Enum):
    """Supported export formats."""
    JSON = 'json'
    JSONL = 'jsonl'
    CSV = 'csv'


@dataclass
class ExportConfig:
    """Configuration for export."""
    include_signals: bool = True
    include_suggestions: bool = True
    pretty_print: bool = True
    indent: int = 2


class VerdictExporter:
    """
    Export verdicts in various formats.

    Usage:
        exporter = VerdictExporter()
        exporter.export(result.verdicts, 'verdicts.csv', ExportFormat.CSV)
    """

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()

    def export(
        self,
        verdicts: List[ReceiptVerdict],
        output_path: str,
        format: ExportFormat = ExportFormat.JSON,
    ) -> str:
        """
        Export verdicts.

        Args:
            verdicts: Verdicts to export
            output_path: Output file path
            format: Export format

        Returns:
            Path to exported file
        """
        os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)

        if format == ExportFormat.JSON:
            path = self._export_json({'verdicts': [self._prepare(v) for v in verdicts]}, output_path)
        elif format == ExportFormat.JSONL:
            path = self._export_jsonl(verdicts, output_path)
        elif format == ExportFormat.CSV:
            path = self._export_csv(verdicts, output_path)
        else:
            raise ValueError(f"Unsupported format: {format}")

        logger.info(f"Exported {len(verdicts)} verdicts to {path}")
        return path

    def export_batch(
        self,
        result: BatchResult,
        output_path: str,
        format: ExportFormat = ExportFormat.JSON,
    ) -> str:
        """
        Export a batch result; JSON output also carries the failed records.
        """
        if format != ExportFormat.JSON:
            return self.export(result.verdicts, output_path, format)

        os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)
        data = result.to_dict()
        data['verdicts'] = [self._prepare(v) for v in result.verdicts]
        path = self._export_json(data, output_path)
        logger.info(f"Exported batch report to {path}")
        return path

    def _prepare(self, verdict: ReceiptVerdict) -> Dict[str, Any]:
        data = verdict.to_dict()
        if not self.config.include_signals:
            data.pop('signals', None)
        if not self.config.include_suggestions:
            data.pop('suggestions', None)
        return data

    def _export_json(self, data: Dict[str, Any], output_path: str) -> str:
        with open(output_path, 'w', encoding='utf-8') as f:
            if self.config.pretty_print:
                json.dump(data, f, indent=self.config.indent, ensure_ascii=False)
            else:
                json.dump(data, f, ensure_ascii=False)
        return output_path

    def _export_jsonl(self, verdicts: List[ReceiptVerdict], output_path: str) -> str:
        with open(output_path, 'w', encoding='utf-8') as f:
            for verdict in verdicts:
                f.write(json.dumps(self._prepare(verdict), ensure_ascii=False) + '\n')
        return output_path

    def _export_csv(self, verdicts: List[ReceiptVerdict], output_path: str) -> str:
        headers = ['receipt_id', 'score', 'auto_approved', 'status', 'reason', 'amount']
        if self.config.include_signals:
            headers.extend(_SIGNAL_COLUMNS)
        if self.config.include_suggestions:
            headers.append('suggestions')

        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(headers)

            for verdict in verdicts:
                row = [
                    verdict.receipt_id or '',
                    verdict.score,
                    verdict.auto_approved,
                    verdict.status.name,
                    verdict.reason.name,
                    '' if verdict.amount is None else verdict.amount,
                ]
                if self.config.include_signals:
                    signals = verdict.signals.to_dict() if verdict.signals is not None else {}
                    row.extend(signals.get(col, '') for col in _SIGNAL_COLUMNS)
                if self.config.include_suggestions:
                    row.append('; '.join(verdict.suggestions))
                writer.writerow(row)

        return output_path
