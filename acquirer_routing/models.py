from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Outcome = Literal["approved", "declined", "error", "timeout"]
CardType = Literal["credit", "debit"]
Currency = Literal["MXN", "BRL", "USD"]
Country = Literal["MX", "BR", "US"]
OptimizationMode = Literal["maximize_approvals", "balanced", "cost_conscious"]
Status = Literal["healthy", "degraded", "down"]

NO_ACQUIRER = "NONE"

class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    acquirer: str
    amount: float
    currency: Currency
    cardType: CardType
    country: Country
    outcome: Outcome
    takeRate: float
    processingTimeMs: int

class PaymentRequest(BaseModel):
    amount: float = Field(gt=0)
    currency: Currency
    cardType: CardType
    country: Country
    optimizationMode: Optional[OptimizationMode] = None

class AcquirerConfig(BaseModel):
    name: str = Field(min_length=1)
    takeRate: float = Field(ge=0)
    enabled: bool = True
    description: str = ""
    aliases: List[str] = Field(default_factory=list)

class AcquirerRegistryFile(BaseModel):
    acquirers: List[AcquirerConfig]

class AcquirerPerformance(BaseModel):
    acquirer: str
    approvalRate: float
    # Summed across blended buckets; a confidence proxy, not an independent count.
    sampleSize: int
    segment: str

class HealthMetrics(BaseModel):
    successRate: float = 0.0
    errorRate: float = 0.0
    timeoutRate: float = 0.0
    totalProcessed: int = 0
    windowSize: int = 0

class HealthStatus(BaseModel):
    acquirer: str
    status: Status = "healthy"
    consecutiveFailures: int = 0
    metrics: HealthMetrics = Field(default_factory=HealthMetrics)
    lastUpdated: Optional[datetime] = None

class AcquirerScore(BaseModel):
    acquirer: str
    totalScore: float
    approvalRateScore: float
    healthScore: float
    costScore: float
    approvalRate: float
    healthStatus: Status
    takeRate: float

class FallbackEntry(BaseModel):
    acquirer: str
    expectedApprovalRate: float
    reason: str

class RoutingDecision(BaseModel):
    selectedAcquirer: str
    scores: List[AcquirerScore] = Field(default_factory=list)
    justification: str
    optimizationMode: OptimizationMode
    fallbackSequence: List[FallbackEntry] = Field(default_factory=list)

class OutcomeReport(BaseModel):
    acquirer: str = Field(min_length=1)
    outcome: Outcome

class SegmentImprovement(BaseModel):
    segment: str
    smartRate: float
    roundRobinRate: float
    liftPp: float

class AcquirerShare(BaseModel):
    count: int
    percentage: float

class ComparisonResult(BaseModel):
    smartApprovalRate: float
    roundRobinApprovalRate: float
    liftPp: float
    estimatedMonthlyRevenueLift: float
    perAcquirerDistribution: Dict[str, AcquirerShare] = Field(default_factory=dict)
    perSegmentImprovements: List[SegmentImprovement] = Field(default_factory=list)
