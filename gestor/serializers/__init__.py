"""
Serializers DRF da API do gestor.

Serializers *Input validam a entrada das views; os demais formatam a saída.
"""
