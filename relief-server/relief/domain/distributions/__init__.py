from .models import BeneficiaryAccount, BeneficiaryPayment, OfflinePayment
from .service import DistributionService

__all__ = ["BeneficiaryAccount", "BeneficiaryPayment", "DistributionService", "OfflinePayment"]
