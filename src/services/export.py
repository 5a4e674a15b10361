"""결과 내보내기: CSV와 인쇄용 HTML 리포트

정규화된 DetectionResult만 입력으로 받는다.
"""

import csv
import io
from datetime import datetime
from html import escape

from src.schemas.detection import Detection, DetectionResult
from src.services.classifier import SIZE_BUCKETS

NOT_AVAILABLE = "N/A"

CSV_HEADER = [
    "ID",
    "Label",
    "Confidence",
    "Size Category",
    "Diagonal (µm)",
    "Width (µm)",
    "Height (µm)",
    "X",
    "Y",
    "Width",
    "Height",
]


def _fmt(value: float | None, digits: int = 2) -> str:
    return NOT_AVAILABLE if value is None else f"{value:.{digits}f}"


def _confidence_pct(detection: Detection) -> str:
    return f"{detection.confidence * 100:.1f}%"


def _metric_values(detection: Detection) -> tuple[str, str, str]:
    metrics = detection.size_metrics
    if metrics is None:
        return NOT_AVAILABLE, NOT_AVAILABLE, NOT_AVAILABLE
    return _fmt(metrics.diagonal_um), _fmt(metrics.width_um), _fmt(metrics.height_um)


def _calibration_summary(result: DetectionResult) -> tuple[str, str]:
    """(µm/px, 시야 범위) 표시 문자열"""
    info = result.calibration_info
    if info is None:
        return NOT_AVAILABLE, NOT_AVAILABLE
    fov_w, fov_h = info.field_of_view_um
    return f"{info.microns_per_pixel:.2f}", f"{fov_w:.0f} × {fov_h:.0f} µm"


def to_csv(result: DetectionResult, generated_at: datetime | None = None) -> str:
    """탐지 결과 CSV (detection당 한 줄 + 크기 분포 요약 + 캘리브레이션)"""
    generated_at = generated_at or datetime.now()
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["Microplastic Detection Results"])
    writer.writerow([f"Date: {generated_at:%Y-%m-%d %H:%M:%S}"])
    writer.writerow([f"Total Detections: {result.count}"])
    writer.writerow([])
    writer.writerow(CSV_HEADER)

    for i, detection in enumerate(result.detections, start=1):
        diagonal, width, height = _metric_values(detection)
        x, y, w, h = detection.bbox
        writer.writerow(
            [
                i,
                detection.label,
                _confidence_pct(detection),
                detection.size_category or NOT_AVAILABLE,
                diagonal,
                width,
                height,
                f"{x:.0f}",
                f"{y:.0f}",
                f"{w:.0f}",
                f"{h:.0f}",
            ]
        )

    writer.writerow([])
    writer.writerow(["Size Distribution Summary"])
    writer.writerow(["Category", "Count"])
    counts = result.size_counts.model_dump()
    for key, bucket in SIZE_BUCKETS.items():
        writer.writerow([bucket.label, counts[key]])

    microns_per_pixel, field_of_view = _calibration_summary(result)
    writer.writerow([])
    writer.writerow(["Calibration Info"])
    writer.writerow(["Microns per pixel:", microns_per_pixel])
    writer.writerow(["Field of View:", field_of_view])

    return buffer.getvalue()


_REPORT_STYLE = """
body { font-family: Arial, sans-serif; margin: 40px; }
.header { text-align: center; margin-bottom: 30px; border-bottom: 2px solid #333; }
.section { margin-bottom: 25px; }
.section-title { font-size: 18px; font-weight: bold; margin-bottom: 10px; }
table { width: 100%; border-collapse: collapse; }
th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
.summary-grid { display: grid; grid-template-columns: repeat(4, 1fr); gap: 15px; }
.summary-item { padding: 15px; border-radius: 8px; text-align: center; }
.image-container img { max-width: 100%; max-height: 500px; }
"""


def _detection_rows(result: DetectionResult) -> str:
    rows: list[str] = []
    for i, detection in enumerate(result.detections, start=1):
        diagonal, width, height = _metric_values(detection)
        rows.append(
            "<tr>"
            f"<td>{i}</td>"
            f"<td>{escape(detection.label)}</td>"
            f"<td>{_confidence_pct(detection)}</td>"
            f"<td>{detection.size_category or NOT_AVAILABLE}</td>"
            f"<td>{diagonal}</td>"
            f"<td>{width} × {height}</td>"
            "</tr>"
        )
    return "\n".join(rows)


def _summary_items(result: DetectionResult) -> str:
    counts = result.size_counts.model_dump()
    return "\n".join(
        f'<div class="summary-item {key}">'
        f'<div class="summary-count">{counts[key]}</div>'
        f"<div>{escape(bucket.label)}</div>"
        "</div>"
        for key, bucket in SIZE_BUCKETS.items()
    )


def to_report_html(
    result: DetectionResult, image_data: str, generated_at: datetime | None = None
) -> str:
    """인쇄용 분석 리포트 (브라우저 인쇄 → PDF)"""
    generated_at = generated_at or datetime.now()
    microns_per_pixel, field_of_view = _calibration_summary(result)

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Microplastic Analysis Report</title>
<style>{_REPORT_STYLE}</style>
</head>
<body>
<div class="header">
<h1>Microplastic Screening Analysis Report</h1>
<p>Generated: {generated_at:%Y-%m-%d %H:%M:%S}</p>
</div>
<div class="section">
<div class="section-title">Summary Statistics</div>
<div class="summary-grid">
{_summary_items(result)}
</div>
<p><strong>Total Particles Detected:</strong> {result.count}</p>
</div>
<div class="section">
<div class="section-title">Detection Details</div>
<table>
<thead><tr><th>ID</th><th>Label</th><th>Confidence</th><th>Size Category</th>\
<th>Diagonal (µm)</th><th>Dimensions (µm)</th></tr></thead>
<tbody>
{_detection_rows(result)}
</tbody>
</table>
</div>
<div class="section">
<div class="section-title">Calibration Information</div>
<p><strong>Microns per pixel:</strong> {microns_per_pixel} µm/px</p>
<p><strong>Field of View:</strong> {field_of_view}</p>
</div>
<div class="section">
<div class="section-title">Annotated Image</div>
<div class="image-container"><img src="{escape(image_data)}" alt="Detection Results"></div>
</div>
<p>Disclaimer: This is a screening tool only. \
For laboratory analysis, consult with certified professionals.</p>
</body>
</html>
"""
