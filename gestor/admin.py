"""
Configuração do Django Admin do Gestor Nexus.

O admin é uma ferramenta de suporte: a operação diária passa pela API.
Registros de auditoria são somente leitura.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from gestor.models import (
    AuditLog, CalendarEvent, Client, FinanceTransaction, FunnelStage, Lead,
    LeadInteraction, LeadOrigin, Payment, Plan, Subscription, Tenant, User, UserPermission
)


class UserPermissionInline(admin.TabularInline):
    model = UserPermission
    extra = 0


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin do usuário customizado (login por email, role e gestor).
    """

    list_display = ['email', 'name', 'role', 'gestor', 'is_active', 'created_at']
    list_filter = ['role', 'is_active']
    search_fields = ['email', 'name']
    ordering = ['email']
    readonly_fields = ['id', 'created_at', 'updated_at', 'last_login']
    inlines = [UserPermissionInline]

    fieldsets = (
        ('Acesso', {
            'fields': ('id', 'email', 'password')
        }),
        ('Perfil', {
            'fields': ('name', 'role', 'gestor')
        }),
        ('Permissões', {
            'fields': ('is_active', 'is_staff', 'is_superuser'),
            'classes': ('collapse',)
        }),
        ('Metadados', {
            'fields': ('last_login', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'role', 'gestor', 'password1', 'password2'),
        }),
    )


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'product', 'price_monthly', 'price_annual', 'is_active', 'sort_order']
    list_filter = ['product', 'is_active']
    search_fields = ['code', 'name']


@admin.register(FunnelStage)
class FunnelStageAdmin(admin.ModelAdmin):
    list_display = ['name', 'order', 'color', 'is_default', 'is_active']
    list_editable = ['order', 'is_active']
    ordering = ['order']


@admin.register(LeadOrigin)
class LeadOriginAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active']
    search_fields = ['name']


class LeadInteractionInline(admin.TabularInline):
    model = LeadInteraction
    extra = 0
    readonly_fields = ['user', 'type', 'title', 'content', 'created_at']


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ['name', 'company_name', 'status', 'stage', 'interest_product', 'vendedor', 'score', 'created_at']
    list_filter = ['status', 'interest_product', 'stage', 'origin']
    search_fields = ['name', 'company_name', 'email', 'cpf_cnpj']
    readonly_fields = ['id', 'score', 'ai_score_factors', 'ai_score_updated_at', 'converted_at', 'created_at', 'updated_at']
    inlines = [LeadInteractionInline]


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['company', 'cpf_cnpj', 'product_type', 'plan', 'status', 'billing_cycle', 'vendedor', 'created_at']
    list_filter = ['status', 'product_type', 'billing_cycle']
    search_fields = ['company', 'contact_name', 'email', 'cpf_cnpj']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ['client', 'plan', 'billing_cycle', 'status', 'next_billing_date', 'amount']
    list_filter = ['status', 'billing_cycle']
    search_fields = ['client__company']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(FinanceTransaction)
class FinanceTransactionAdmin(admin.ModelAdmin):
    list_display = ['description', 'type', 'category', 'amount', 'date', 'due_date', 'status', 'is_recurring']
    list_filter = ['type', 'category', 'status', 'is_recurring', 'product_type']
    search_fields = ['description', 'client__company']
    date_hierarchy = 'date'
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['client', 'amount', 'due_date', 'status', 'method', 'gateway', 'paid_at']
    list_filter = ['status', 'method', 'gateway']
    search_fields = ['client__company', 'external_id', 'gateway_id']
    readonly_fields = ['id', 'gateway_data', 'created_at', 'updated_at']


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ['client', 'tenant_uuid', 'status', 'vps_location', 'version', 'active_users', 'last_access_at']
    list_filter = ['status', 'vps_location']
    search_fields = ['tenant_uuid', 'client__company']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(CalendarEvent)
class CalendarEventAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'start_at', 'end_at', 'user', 'deleted_at']
    list_filter = ['type', 'is_all_day', 'is_recurring']
    search_fields = ['title', 'user__email']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'user', 'action', 'entity', 'entity_id', 'ip_address']
    list_filter = ['action', 'entity']
    search_fields = ['entity_id', 'user__email']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
