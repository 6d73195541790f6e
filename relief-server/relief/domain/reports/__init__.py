from .service import DailyDistribution, ImpactReport, ImpactReportService

__all__ = ["DailyDistribution", "ImpactReport", "ImpactReportService"]
