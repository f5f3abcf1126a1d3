"""
URLs do app gestor.

Define as rotas da API REST e dos webhooks, montadas em /api/v1/.
"""

from django.urls import path

from gestor.views import agenda, auth, clients, crm, dashboard, finance, tenants, users, webhooks

urlpatterns = [
    # Health check
    path('health/', dashboard.health, name='health'),

    # Autenticação (JWT)
    path('auth/login/', auth.login_view, name='auth_login'),
    path('auth/refresh/', auth.refresh_view, name='auth_refresh'),
    path('auth/me/', auth.me, name='auth_me'),
    path('auth/change-password/', auth.change_password, name='auth_change_password'),

    # Usuários
    path('users/', users.user_list, name='user_list'),
    path('users/<uuid:pk>/', users.user_detail, name='user_detail'),
    path('users/<uuid:pk>/permissions/', users.user_permissions, name='user_permissions'),

    # Planos
    path('plans/', crm.plan_list, name='plan_list'),
    path('plans/code/<str:code>/', crm.plan_by_code, name='plan_by_code'),
    path('plans/<uuid:pk>/', crm.plan_detail, name='plan_detail'),
    path('plans/<uuid:pk>/restore/', crm.plan_restore, name='plan_restore'),

    # Funil de vendas
    path('funnel-stages/', crm.stage_list, name='stage_list'),
    path('funnel-stages/reorder/', crm.stage_reorder, name='stage_reorder'),
    path('funnel-stages/<uuid:pk>/', crm.stage_detail, name='stage_detail'),

    # Leads
    path('leads/', crm.lead_list, name='lead_list'),
    path('leads/origins/', crm.lead_origins, name='lead_origins'),
    path('leads/cities/', crm.lead_cities, name='lead_cities'),
    path('leads/check-duplicate/<str:document>/', crm.lead_check_duplicate, name='lead_check_duplicate'),
    path('leads/<uuid:pk>/', crm.lead_detail, name='lead_detail'),
    path('leads/<uuid:pk>/interactions/', crm.lead_interactions, name='lead_interactions'),
    path('leads/<uuid:pk>/convert/', crm.lead_convert, name='lead_convert'),
    path('leads/<uuid:pk>/generate-summary/', crm.lead_generate_summary, name='lead_generate_summary'),
    path('leads/<uuid:pk>/score/', crm.lead_score, name='lead_score'),

    # Clientes
    path('clients/', clients.client_list, name='client_list'),
    path('clients/document/<str:document>/', clients.client_by_document, name='client_by_document'),
    path('clients/<uuid:pk>/', clients.client_detail, name='client_detail'),
    path('clients/<uuid:pk>/cancel/', clients.client_cancel, name='client_cancel'),
    path('clients/<uuid:pk>/reactivate/', clients.client_reactivate, name='client_reactivate'),
    path('clients/<uuid:client_id>/transactions/', finance.client_transactions, name='client_transactions'),

    # Assinaturas
    path('subscriptions/client/<uuid:client_id>/', clients.client_subscriptions, name='client_subscriptions'),
    path(
        'subscriptions/client/<uuid:client_id>/active/',
        clients.client_active_subscription,
        name='client_active_subscription',
    ),
    path('subscriptions/reactivate/', clients.subscription_reactivate, name='subscription_reactivate'),

    # Financeiro
    path('finance/transactions/', finance.transaction_list, name='transaction_list'),
    path('finance/transactions/import-pdf/', finance.transaction_import_pdf, name='transaction_import_pdf'),
    path('finance/transactions/<uuid:pk>/', finance.transaction_detail, name='transaction_detail'),
    path('finance/transactions/<uuid:pk>/pay/', finance.transaction_pay, name='transaction_pay'),
    path('finance/overdue-clients/', finance.overdue_clients, name='overdue_clients'),
    path('finance/upcoming-due-dates/', finance.upcoming_due_dates, name='upcoming_due_dates'),
    path('finance/metrics/', finance.finance_metrics, name='finance_metrics'),
    path('finance/metrics/mrr-history/', finance.mrr_history, name='mrr_history'),
    path('finance/metrics/arr-history/', finance.arr_history, name='arr_history'),
    path('finance/metrics/aging-report/', finance.aging_report, name='aging_report'),

    # Pagamentos
    path('payments/', finance.payment_list, name='payment_list'),
    path('payments/stats/', finance.payment_stats, name='payment_stats'),
    path('payments/external/<str:external_id>/', finance.payment_by_external_id, name='payment_by_external_id'),
    path('payments/<uuid:pk>/', finance.payment_detail, name='payment_detail'),
    path('payments/<uuid:pk>/mark-paid/', finance.payment_mark_paid, name='payment_mark_paid'),
    path('payments/<uuid:pk>/cancel/', finance.payment_cancel, name='payment_cancel'),

    # Webhooks dos gateways
    path('webhooks/asaas/', webhooks.asaas_webhook, name='asaas_webhook'),
    path('webhooks/abacatepay/', webhooks.abacatepay_webhook, name='abacatepay_webhook'),

    # Tenants
    path('tenants/', tenants.tenant_list, name='tenant_list'),
    path('tenants/client/<uuid:client_id>/', tenants.tenant_by_client, name='tenant_by_client'),
    path('tenants/uuid/<str:tenant_uuid>/', tenants.tenant_by_uuid, name='tenant_by_uuid'),
    path('tenants/<uuid:pk>/', tenants.tenant_detail, name='tenant_detail'),
    path('tenants/<uuid:pk>/suspend/', tenants.tenant_suspend, name='tenant_suspend'),
    path('tenants/<uuid:pk>/activate/', tenants.tenant_activate, name='tenant_activate'),
    path('tenants/<uuid:pk>/block/', tenants.tenant_block, name='tenant_block'),
    path('tenants/<uuid:pk>/metrics/', tenants.tenant_metrics, name='tenant_metrics'),

    # Auditoria
    path('audit/', dashboard.audit_list, name='audit_list'),
    path('audit/export/', dashboard.audit_export, name='audit_export'),

    # Dashboard
    path('dashboard/stats/', dashboard.dashboard_stats, name='dashboard_stats'),
    path('dashboard/insights/', dashboard.dashboard_insights, name='dashboard_insights'),

    # Agenda
    path('calendar/events/', agenda.event_list, name='event_list'),
    path('calendar/events/<uuid:pk>/', agenda.event_detail, name='event_detail'),
    path('calendar/holidays/', agenda.holidays, name='holidays'),
]
