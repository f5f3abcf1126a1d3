"""
URL configuration for nexus project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.0/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),

    # API REST e webhooks
    path('api/v1/', include('gestor.urls')),
]

# Configuração do título do Admin
admin.site.site_header = 'Gestor Nexus - CRM e Faturamento'
admin.site.site_title = 'Gestor Nexus Admin'
admin.site.index_title = 'Painel de Administração'
