"""
Módulo de limpeza, validação e formatação de documentos (CPF/CNPJ).

Implementa a validação dos dígitos verificadores conforme a Receita Federal.
Clientes e leads guardam o documento como digitado; comparações de
duplicidade sempre usam apenas os dígitos.
"""

import re

# Valor usado por conversões que ainda não têm o documento do cliente
PENDING_DOCUMENT = 'PENDING'


def clean_document(document: str) -> str:
    """
    Remove caracteres não numéricos do CPF/CNPJ.

    Args:
        document: Documento com ou sem formatação

    Returns:
        String contendo apenas dígitos
    """
    return re.sub(r'\D', '', document or '')


def validate_cnpj(cnpj: str) -> bool:
    """
    Valida CNPJ usando o algoritmo da Receita Federal.

    Rejeita tamanhos diferentes de 14 dígitos e sequências repetidas.
    """
    cnpj = clean_document(cnpj)

    if len(cnpj) != 14 or cnpj == cnpj[0] * 14:
        return False

    peso = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    soma = sum(int(cnpj[i]) * peso[i] for i in range(12))
    resto = soma % 11
    digito1 = 0 if resto < 2 else 11 - resto

    if int(cnpj[12]) != digito1:
        return False

    peso = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    soma = sum(int(cnpj[i]) * peso[i] for i in range(13))
    resto = soma % 11
    digito2 = 0 if resto < 2 else 11 - resto

    return int(cnpj[13]) == digito2


def validate_cpf(cpf: str) -> bool:
    """
    Valida CPF (11 dígitos) pelos dois dígitos verificadores.
    """
    cpf = clean_document(cpf)

    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False

    for size in (9, 10):
        soma = sum(int(cpf[i]) * (size + 1 - i) for i in range(size))
        digito = (soma * 10) % 11 % 10
        if int(cpf[size]) != digito:
            return False

    return True


def format_document(document: str) -> str:
    """
    Formata CPF (XXX.XXX.XXX-XX) ou CNPJ (XX.XXX.XXX/XXXX-XX).

    Returns:
        Documento formatado ou o valor original se o tamanho não bater
    """
    digits = clean_document(document)
    if len(digits) == 14:
        return f'{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:14]}'
    if len(digits) == 11:
        return f'{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:11]}'
    return document


def filter_by_document(queryset, document: str, field: str = 'cpf_cnpj'):
    """
    Filtra registros cujo documento tem os mesmos dígitos de document.

    A pontuação (. - / e espaços) é removida no próprio banco.
    """
    from django.db.models import F, Value
    from django.db.models.functions import Replace

    expression = F(field)
    for char in ('.', '-', '/', ' '):
        expression = Replace(expression, Value(char), Value(''))
    return queryset.annotate(document_digits=expression).filter(document_digits=clean_document(document))
