from django.apps import AppConfig


class GestorConfig(AppConfig):
    """Configuração do app gestor do Gestor Nexus."""
    # Modelos do Gestor usam UUIDField explicitamente como pk
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'gestor'
    verbose_name = 'Gestor Nexus - Núcleo do Sistema'
