"""
Módulo de modelos do gestor.

Importa todos os modelos para facilitar o uso em outras partes do sistema.
"""

from gestor.models.base import TimestampedModel, ScopedQuerySet
from gestor.models.user import User, UserRole, UserPermission, PermissionModule
from gestor.models.plan import Plan, ProductType, BillingCycle, PRODUCT_MODULE_NAMES
from gestor.models.crm import (
    FunnelStage, LeadOrigin, Lead, LeadInteraction, LeadStatus,
    STAGE_WON, STAGE_LOST
)
from gestor.models.client import Client, ClientStatus, ACTIVE_CLIENT_STATUSES
from gestor.models.billing import Subscription, SubscriptionStatus, CancellationReason
from gestor.models.finance import (
    FinanceTransaction, Payment,
    TransactionType, TransactionCategory, TransactionStatus,
    PaymentStatus, PaymentMethod, PaymentGateway,
    calculate_transaction_status
)
from gestor.models.tenant import Tenant, TenantStatus
from gestor.models.audit import AuditLog
from gestor.models.agenda import CalendarEvent, EventType

__all__ = [
    'TimestampedModel', 'ScopedQuerySet',
    'User', 'UserRole', 'UserPermission', 'PermissionModule',
    'Plan', 'ProductType', 'BillingCycle', 'PRODUCT_MODULE_NAMES',
    'FunnelStage', 'LeadOrigin', 'Lead', 'LeadInteraction', 'LeadStatus',
    'STAGE_WON', 'STAGE_LOST',
    'Client', 'ClientStatus', 'ACTIVE_CLIENT_STATUSES',
    'Subscription', 'SubscriptionStatus', 'CancellationReason',
    'FinanceTransaction', 'Payment',
    'TransactionType', 'TransactionCategory', 'TransactionStatus',
    'PaymentStatus', 'PaymentMethod', 'PaymentGateway',
    'calculate_transaction_status',
    'Tenant', 'TenantStatus',
    'AuditLog',
    'CalendarEvent', 'EventType',
]
