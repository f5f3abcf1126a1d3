"""
Views da API REST do Gestor Nexus.
"""
