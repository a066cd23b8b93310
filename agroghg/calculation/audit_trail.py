"""
Audit Trail Generator

Generates complete calculation provenance for GHG inventory audits.

Every calculation trail has:
1. Activity data as supplied
2. Emission factor selection (name, source, methodology, qualifiers)
3. Calculation steps with intermediate (unrounded) values
4. Final fossil / biogenic / total CO2e
5. SHA-256 hash for tamper detection
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from agroghg.calculation.core_calculator import GWP_CH4, GWP_N2O, GWP_SET, EmissionResult
from agroghg.determinism import DeterministicClock, content_hash


@dataclass
class CalculationStep:
    """
    Individual step in calculation audit trail.

    Attributes:
        step_number: Sequential step number
        description: Human-readable step description
        operation: Operation type (validate, lookup, multiply, split, weight, round)
        inputs: Input values for this step
        output: Output value from this step
        timestamp: When step was recorded
    """
    step_number: int
    description: str
    operation: str
    inputs: Dict[str, Any]
    output: Any
    timestamp: datetime = field(default_factory=DeterministicClock.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'step_number': self.step_number,
            'description': self.description,
            'operation': self.operation,
            'inputs': self.inputs,
            'output': str(self.output) if self.output is not None else None,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class AuditTrail:
    """
    Complete audit trail for one emission calculation.

    - What was calculated (activity data)
    - Which factor was used (source, methodology)
    - How it was calculated (steps)
    - Result verification (SHA-256 hash)
    """
    calculation_id: str
    calculation_result: EmissionResult
    steps: List[CalculationStep]
    input_summary: Dict[str, Any]
    factor_summary: Dict[str, Any]
    output_summary: Dict[str, Any]
    created_at: datetime = field(default_factory=DeterministicClock.utcnow)
    trail_hash: Optional[str] = None

    def __post_init__(self):
        """Generate trail hash after initialization"""
        if self.trail_hash is None:
            self.trail_hash = self._calculate_trail_hash()

    def _calculate_trail_hash(self) -> str:
        """Calculate SHA-256 hash of complete audit trail"""
        return content_hash({
            'calculation_id': self.calculation_id,
            'input_summary': self.input_summary,
            'factor_summary': self.factor_summary,
            'steps': [step.to_dict() for step in self.steps],
            'output_summary': self.output_summary,
            'created_at': self.created_at.isoformat(),
        })

    def verify_integrity(self) -> bool:
        """
        Verify audit trail integrity.

        Returns:
            True if trail is intact, False if tampered/corrupted
        """
        return self.trail_hash == self._calculate_trail_hash()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'calculation_id': self.calculation_id,
            'calculation_result': self.calculation_result.to_dict(),
            'steps': [step.to_dict() for step in self.steps],
            'input_summary': self.input_summary,
            'factor_summary': self.factor_summary,
            'output_summary': self.output_summary,
            'created_at': self.created_at.isoformat(),
            'trail_hash': self.trail_hash,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON"""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def to_markdown(self) -> str:
        """Generate human-readable markdown audit report."""
        md = "# Calculation Audit Trail\n\n"
        md += f"**Calculation ID:** `{self.calculation_id}`\n\n"
        md += f"**Created:** {self.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')}\n\n"
        md += f"**Trail Hash:** `{self.trail_hash}`\n\n"

        md += "## Input Summary\n\n"
        md += "| Parameter | Value |\n"
        md += "|-----------|-------|\n"
        for key, value in self.input_summary.items():
            md += f"| {key} | {value} |\n"

        md += "\n## Emission Factor\n\n"
        md += "| Attribute | Value |\n"
        md += "|-----------|-------|\n"
        for key, value in self.factor_summary.items():
            md += f"| {key} | {value} |\n"

        md += "\n## Calculation Steps\n\n"
        for step in self.steps:
            md += f"### Step {step.step_number}: {step.description}\n\n"
            md += f"**Operation:** `{step.operation}`\n\n"
            if step.inputs:
                md += "**Inputs:**\n\n"
                for key, value in step.inputs.items():
                    md += f"- {key}: `{value}`\n"
                md += "\n"
            md += f"**Output:** `{step.output}`\n\n"

        md += "## Result Summary\n\n"
        md += "| Metric | Value |\n"
        md += "|--------|-------|\n"
        for key, value in self.output_summary.items():
            md += f"| {key} | {value} |\n"

        md += "\n---\n\n"
        md += f"*Audit trail SHA-256 hash: `{self.trail_hash}`*\n"

        return md


class AuditTrailGenerator:
    """Generates audit trails from emission results."""

    def generate(self, calculation: EmissionResult) -> AuditTrail:
        """
        Generate complete audit trail from a calculation result.

        Args:
            calculation: EmissionResult from EmissionCalculator

        Returns:
            AuditTrail with complete provenance

        Example:
            >>> result = calculate_emissions("Aplicação de Ureia", {"urea_amount": 10})
            >>> print(AuditTrailGenerator().generate(result).to_markdown())
        """
        details = calculation.calculation_details
        factor = details.get('factor', {})
        created_at = DeterministicClock.utcnow()

        input_summary = {
            'Subcategory': calculation.subcategory,
            'Activity Field': details.get('activity_field'),
            'Quantity': details.get('quantity'),
            'Activity Unit': factor.get('activity_unit'),
        }
        for key, value in details.get('inputs', {}).items():
            if value is not None:
                input_summary[key] = value

        factor_summary = {
            'Factor Name': factor.get('name'),
            'Source': factor.get('source'),
            'Methodology': factor.get('methodology'),
            'CO2 Factor': factor.get('co2_factor') or 'Not specified',
            'CH4 Factor': factor.get('ch4_factor') or 'Not specified',
            'N2O Factor': factor.get('n2o_factor') or 'Not specified',
            'Biogenic Fraction': details.get('biogenic_fraction'),
            'Uncertainty': factor.get('uncertainty_range') or 'Not specified',
            'GWP Set': f"{GWP_SET} (CH4 {GWP_CH4}, N2O {GWP_N2O})",
        }

        steps = []
        for i, step_data in enumerate(details.get('steps', []), 1):
            steps.append(CalculationStep(
                step_number=i,
                description=step_data.get('description', ''),
                operation=step_data.get('operation', 'unknown'),
                inputs={
                    k: v for k, v in step_data.items()
                    if k not in ('step', 'description', 'operation', 'output')
                },
                output=step_data.get('output'),
                timestamp=created_at,
            ))

        output_summary = {
            'Raw CO2 (t)': str(calculation.raw_co2),
            'Raw CH4 (t)': str(calculation.raw_ch4),
            'Raw N2O (t)': str(calculation.raw_n2o),
            'Fossil CO2e (t)': str(calculation.fossil_co2e),
            'Biogenic CO2e (t)': str(calculation.biogenic_co2e),
            'Total CO2e (t)': str(calculation.total_co2e),
            'Provenance Hash': calculation.provenance_hash,
            'Engine Version': calculation.engine_version,
        }

        return AuditTrail(
            calculation_id=calculation.provenance_hash[:16],
            calculation_result=calculation,
            steps=steps,
            input_summary=input_summary,
            factor_summary=factor_summary,
            output_summary=output_summary,
            created_at=created_at,
        )

    def generate_batch_report(
        self,
        calculations: Sequence[EmissionResult],
        report_title: str = "Batch Calculation Report",
    ) -> str:
        """
        Generate markdown report for a set of calculations.

        Args:
            calculations: EmissionResults
            report_title: Title for report

        Returns:
            Markdown report summarizing all calculations
        """
        fossil = sum((c.fossil_co2e for c in calculations), Decimal(0))
        biogenic = sum((c.biogenic_co2e for c in calculations), Decimal(0))
        total = sum((c.total_co2e for c in calculations), Decimal(0))

        md = f"# {report_title}\n\n"
        md += f"**Generated:** {DeterministicClock.utcnow().strftime('%Y-%m-%d %H:%M:%S UTC')}\n\n"
        md += f"**Total Calculations:** {len(calculations)}\n\n"

        md += "## Summary\n\n"
        md += "| Metric | Value |\n"
        md += "|--------|-------|\n"
        md += f"| Fossil CO2e (t) | {fossil:,.3f} |\n"
        md += f"| Biogenic CO2e (t) | {biogenic:,.3f} |\n"
        md += f"| Total CO2e (t) | {total:,.3f} |\n"

        md += "\n## Individual Calculations\n\n"
        md += "| # | Subcategory | Factor | Quantity | Total CO2e (t) |\n"
        md += "|---|-------------|--------|----------|----------------|\n"

        for i, calc in enumerate(calculations, 1):
            details = calc.calculation_details
            md += f"| {i} | {calc.subcategory} | {details.get('factor', {}).get('name', '')} | "
            md += f"{details.get('quantity', '')} | {calc.total_co2e:,.3f} |\n"

        return md
