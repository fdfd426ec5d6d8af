# chess_patterns/output/report_generator.py
"""
Formats `AnalysisReport` objects for the command line.

This module contains the `ReportGenerator`, a "dumb" formatting service. It
contains no business logic and relies on the engine to provide it with
complete reports.
"""

from typing import Any, Dict, List

from chess_patterns.types import AnalysisReport, MoveSequence


class ReportGenerator:
    """A stateless service that turns analysis reports into JSON-safe dicts or text."""

    def to_dict(self, report: AnalysisReport) -> Dict[str, Any]:
        prediction = report.prediction
        sequence = report.sequence
        data: Dict[str, Any] = {
            "signature": report.signature.to_dict(),
            "matches": [
                {"pattern_id": m.pattern_id, "outcome": m.outcome,
                 "similarity": round(m.similarity, 4), "archetype": m.signature.archetype}
                for m in report.matches
            ],
            "prediction": {
                "prediction_available": prediction.prediction_available,
                "predicted_outcome": prediction.predicted_outcome,
                "outcome_probabilities": prediction.outcome_probabilities,
                "confidence": round(prediction.confidence, 4),
                "divergence": prediction.divergence,
                "sustainability": {
                    "sustainable": prediction.sustainability.sustainable,
                    "reason": prediction.sustainability.reason,
                    "risk_level": prediction.sustainability.risk_level.value,
                },
                "lookahead_horizon": prediction.lookahead_horizon,
                "sample_size": prediction.sample_size,
                "milestones": [
                    {"predicted_index": m.predicted_index, "event": m.event,
                     "probability": m.probability, "impact": m.impact,
                     "recommendation": m.recommendation}
                    for m in prediction.milestones
                ],
                "guidance": prediction.guidance,
            },
        }
        if isinstance(sequence, MoveSequence):
            data["game"] = {
                "white": sequence.metadata.white_player,
                "black": sequence.metadata.black_player,
                "result": sequence.metadata.result,
                "moves": len(sequence),
                "final_fen": sequence.final_fen,
            }
        if report.ledger is not None:
            data["ledger"] = {"total_visits": report.ledger.total_visits()}
        return data

    def render_text(self, report: AnalysisReport) -> str:
        sig = report.signature
        qp, tf = sig.quadrant_profile, sig.temporal_flow
        prediction = report.prediction
        lines: List[str] = [
            f"Fingerprint : {sig.fingerprint}",
            f"Archetype   : {sig.archetype}",
            f"Moves       : {sig.total_moves}",
            f"Quadrants   : q1={qp.q1:.3f} q2={qp.q2:.3f} q3={qp.q3:.3f} q4={qp.q4:.3f} center={qp.center:.3f}",
            f"Flow        : {tf.opening:.2f} / {tf.midgame:.2f} / {tf.endgame:.2f} "
            f"({tf.trend.value}, momentum {tf.momentum:+.2f})",
            f"Intensity   : {sig.intensity:.3f}",
            f"Force       : {sig.dominant_force.value}, direction {sig.flow_direction.value}",
            f"Moments     : {len(sig.critical_moments)}",
        ]
        for moment in sig.critical_moments:
            lines.append(f"  - {moment.description} (severity {moment.severity:.2f})")
        lines.append(f"Matches     : {len(report.matches)}")
        for match in report.matches:
            lines.append(f"  - {match.pattern_id}: {match.outcome} ({match.similarity:.3f})")
        if prediction.prediction_available:
            probabilities = ", ".join(f"{k}={v:.2f}" for k, v in prediction.outcome_probabilities.items())
            lines.append(f"Outcomes    : {probabilities}")
            lines.append(f"Divergence  : {prediction.divergence:.3f}")
        lines.append(
            f"Sustainable : {'yes' if prediction.sustainability.sustainable else 'no'} "
            f"({prediction.sustainability.risk_level.value} risk) - {prediction.sustainability.reason}"
        )
        lines.append(f"Guidance    : {prediction.guidance}")
        return "\n".join(lines)
