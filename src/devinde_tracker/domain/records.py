"""Persisted record shapes.

Every field is optional: records come from storage written by several
generations of the tracker, so legacy aliases (``targetDate``, ``segment``,
``url``, ``name`` on trends) are declared next to the current keys. The
adapter layer reads these shapes through ``adapters.schema`` descriptors and
never assumes a key is present.
"""

from __future__ import annotations

from typing import TypedDict


class CommentRecord(TypedDict, total=False):
    id: str
    author: str
    content: str
    timestamp: str
    edited: bool
    createdAt: str
    updatedAt: str


class MilestoneRecord(TypedDict, total=False):
    id: str
    title: str
    description: str
    category: str
    status: str
    isCompleted: bool
    progress: float
    tasksTotal: int
    tasksCompleted: int
    daysRemaining: int
    isLate: bool
    dueDate: str
    targetDate: str
    comments: list[CommentRecord]
    createdAt: str
    updatedAt: str


class SubTaskRecord(TypedDict, total=False):
    id: str
    title: str
    description: str
    priority: str
    status: str
    completed: bool
    comments: list[CommentRecord]
    tags: list[str]
    milestoneId: str
    createdAt: str
    updatedAt: str


class TaskRecord(TypedDict, total=False):
    id: str
    title: str
    description: str
    priority: str
    status: str
    assignee: str
    startDate: str
    dueDate: str
    estimatedHours: float
    actualHours: float
    subtasks: list[SubTaskRecord]
    dependencies: list[str]
    comments: list[CommentRecord]
    tags: list[str]
    isBlocking: bool
    milestoneId: str
    createdAt: str
    updatedAt: str


class ActionPlanRecord(TypedDict, total=False):
    milestones: list[MilestoneRecord]
    tasks: list[TaskRecord]


class CanvasItemRecord(TypedDict, total=False):
    id: str
    name: str
    description: str
    priority: str


class HourlyRateRecord(TypedDict, total=False):
    id: str
    serviceType: str
    rate: float
    currency: str


class PackageRecord(TypedDict, total=False):
    id: str
    name: str
    description: str
    price: float
    currency: str
    services: list[str]


class SubscriptionRecord(TypedDict, total=False):
    id: str
    name: str
    description: str
    monthlyPrice: float
    currency: str
    features: list[str]


class CustomPricingRecord(TypedDict, total=False):
    id: str
    name: str
    description: str
    minPrice: float
    maxPrice: float
    currency: str
    pricingFactors: list[str]


class BusinessModelRecord(TypedDict, total=False):
    partners: list[CanvasItemRecord]
    activities: list[CanvasItemRecord]
    resources: list[CanvasItemRecord]
    valuePropositions: list[CanvasItemRecord]
    customerRelations: list[CanvasItemRecord]
    channels: list[CanvasItemRecord]
    segments: list[CanvasItemRecord]
    costStructure: list[CanvasItemRecord]
    revenueStreams: list[CanvasItemRecord]
    hourlyRates: list[HourlyRateRecord]
    packages: list[PackageRecord]
    subscriptions: list[SubscriptionRecord]
    customPricing: list[CustomPricingRecord]


class CustomerSegmentRecord(TypedDict, total=False):
    id: str
    name: str
    segment: str
    description: str
    needs: list[str]
    potentialSize: str
    profitability: str
    acquisition: str
    idealClient: str
    painPoints: list[str]
    budget: str
    decisionFactor: str
    growthRate: str
    keyInsights: list[str]
    size: str
    createdAt: str
    updatedAt: str


class CompetitorRecord(TypedDict, total=False):
    id: str
    name: str
    website: str
    url: str
    description: str
    strengths: list[str]
    weaknesses: list[str]
    targetMarket: str
    pricingStrategy: str
    marketShare: str
    differentiators: list[str]
    productQuality: int
    customerService: int
    pricing: int
    innovation: int
    reputationScore: int
    threat: str
    createdAt: str
    updatedAt: str


class OpportunityRecord(TypedDict, total=False):
    id: str
    title: str
    description: str
    potential: str
    risk: str
    estimatedInvestment: str
    timeframe: str
    expectedImpact: str
    recommendedActions: list[str]
    stakeholders: list[str]
    keyInsights: list[str]
    categories: list[str]
    createdAt: str
    updatedAt: str


class TrendRecord(TypedDict, total=False):
    id: str
    title: str
    name: str
    description: str
    impact: str
    timeframe: str
    sources: list[str]
    indicators: list[str]
    sectors: list[str]
    relatedOpportunities: list[str]
    relatedThreats: list[str]
    createdAt: str
    updatedAt: str


class MarketAnalysisRecord(TypedDict, total=False):
    targetClients: list[CustomerSegmentRecord]
    customerSegments: list[CustomerSegmentRecord]
    segments: list[CustomerSegmentRecord]
    competitors: list[CompetitorRecord]
    opportunities: list[OpportunityRecord]
    trends: list[TrendRecord | str]
    strengths: list[str]


class ContactInfoRecord(TypedDict, total=False):
    email: str
    phone: str
    address: str


class IncidentRecord(TypedDict, total=False):
    id: str
    clientId: str
    businessPlanId: str
    documentId: str
    type: str
    description: str
    date: str
    amountInvolved: float
    resolved: bool
    resolutionDate: str
    resolutionNotes: str
    createdAt: str
    updatedAt: str


class RiskClientRecord(TypedDict, total=False):
    id: str
    clientId: str
    clientName: str
    riskLevel: str
    incidents: list[IncidentRecord]
    notes: str
    addedOn: str
    contactInfo: ContactInfoRecord
    createdAt: str
    updatedAt: str


class ClientInfoRecord(TypedDict, total=False):
    id: str
    name: str
    address: str
    city: str
    zipCode: str
    country: str
    email: str
    phone: str
    vatNumber: str


class CompanyInfoRecord(TypedDict, total=False):
    name: str
    address: str
    city: str
    zipCode: str
    country: str
    email: str
    phone: str
    website: str
    siret: str
    vatNumber: str
    logo: str


class InvoiceItemRecord(TypedDict, total=False):
    id: str
    description: str
    quantity: float
    unitPrice: float
    taxRate: float
    discount: float
    notes: str
    serviceId: str


class PaymentRecord(TypedDict, total=False):
    id: str
    documentId: str
    date: str
    amount: float
    method: str
    reference: str
    notes: str
    receiptNumber: str
    receiptSent: bool
    createdAt: str
    updatedAt: str


class InvoiceDocumentRecord(TypedDict, total=False):
    id: str
    type: str
    status: str
    number: str
    issueDate: str
    dueDate: str
    validUntil: str
    clientInfo: ClientInfoRecord
    companyInfo: CompanyInfoRecord
    items: list[InvoiceItemRecord]
    notes: str
    paymentTerms: str
    businessPlanId: str
    serviceId: str
    payments: list[PaymentRecord]
    amountPaid: float
    remainingAmount: float
    lastPaymentDate: str
    lastReminderDate: str
    reminderCount: int
    clientRiskFlag: bool
    subtotal: float
    taxAmount: float
    total: float
    createdAt: str
    updatedAt: str


class DiscountThresholdRecord(TypedDict, total=False):
    hours: float
    discountPercentage: float


class PriceRangeRecord(TypedDict, total=False):
    min: float
    max: float


class CatalogServiceRecord(TypedDict, total=False):
    """One catalog service; which price keys are present depends on ``pricingType``."""

    id: str
    name: str
    description: str
    type: str
    category: str
    tags: list[str]
    isActive: bool
    pricingType: str
    hourlyRate: float
    minimumHours: float
    discountThresholds: list[DiscountThresholdRecord]
    price: float
    estimatedHours: float
    deliverables: list[str]
    estimatedTimeframe: str
    billingCycle: str
    minimumCommitment: int
    includedItems: list[str]
    priceRange: PriceRangeRecord
    pricingFactors: list[str]
    requiresConsultation: bool
    createdAt: str
    updatedAt: str


class ServiceCategoryRecord(TypedDict, total=False):
    id: str
    name: str
    description: str
    order: int


class ServiceCatalogRecord(TypedDict, total=False):
    services: list[CatalogServiceRecord]
    categories: list[ServiceCategoryRecord]
    businessPlanId: str


__all__ = [
    "ActionPlanRecord",
    "BusinessModelRecord",
    "CanvasItemRecord",
    "CatalogServiceRecord",
    "ClientInfoRecord",
    "CommentRecord",
    "CompanyInfoRecord",
    "CompetitorRecord",
    "ContactInfoRecord",
    "CustomPricingRecord",
    "CustomerSegmentRecord",
    "DiscountThresholdRecord",
    "HourlyRateRecord",
    "IncidentRecord",
    "InvoiceDocumentRecord",
    "InvoiceItemRecord",
    "MarketAnalysisRecord",
    "MilestoneRecord",
    "OpportunityRecord",
    "PackageRecord",
    "PaymentRecord",
    "PriceRangeRecord",
    "RiskClientRecord",
    "ServiceCatalogRecord",
    "ServiceCategoryRecord",
    "SubTaskRecord",
    "SubscriptionRecord",
    "TaskRecord",
    "TrendRecord",
]
