"""
Service financeiro (lançamentos).

O status exibido de cada lançamento é calculado (ver
calculate_transaction_status): o sistema nunca grava OVERDUE por conta
própria. Marcar como pago ou cancelar um lançamento dispara a
sincronização de status do cliente e da assinatura.
"""

import io
import logging
import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

import pypdf
from django.db.models import Q
from django.utils import timezone

from gestor.exceptions import BadRequest, NotFound
from gestor.models import (
    FinanceTransaction, ProductType, TransactionCategory, TransactionStatus,
    TransactionType, calculate_transaction_status
)
from gestor.services.status_sync import StatusSyncService
from gestor.utils.currency import format_brl, format_compact, to_decimal
from gestor.utils.dates import today as local_today

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    TransactionStatus.PAID: 'green',
    TransactionStatus.PENDING: 'yellow',
    TransactionStatus.OVERDUE: 'red',
    TransactionStatus.CANCELLED: 'gray',
}

UPCOMING_DAYS = 7

# Importação de PDF: linhas no formato "Data | Descrição | Valor"
PDF_DATE_REGEX = re.compile(r'(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})')
PDF_AMOUNT_REGEX = re.compile(r'R\$?\s*(\d{1,3}(?:\.\d{3})*(?:,\d{2})?)')
DESCRIPTION_MAX_LENGTH = 300


def product_filter(product_type: Optional[str]) -> Q:
    """
    Filtro por produto: do próprio lançamento ou, na falta, do cliente.

    'ALL' ou vazio não filtra.
    """
    if not product_type or product_type == 'ALL':
        return Q()
    return Q(product_type=product_type) | Q(client__product_type=product_type)


def format_currency(value) -> str:
    """Formato compacto dos cards (R$ 2.50M, R$ 15.3k, R$ 950,00)."""
    return format_compact(value)


def format_date_br(value: Optional[date]) -> Optional[str]:
    return value.strftime('%d/%m/%Y') if value else None


class FinanceService:
    """
    CRUD de lançamentos, visões por cliente e importação de extratos em PDF.
    """

    def __init__(self):
        self.status_sync = StatusSyncService()

    def _queryset(self):
        return FinanceTransaction.objects.select_related('client', 'client__vendedor', 'created_by')

    def format(self, transaction: FinanceTransaction, reference: Optional[date] = None) -> Dict:
        """
        Representação do lançamento para a API (status calculado).
        """
        client = transaction.client
        product_type = transaction.product_type or (client.product_type if client else None) or None
        status = calculate_transaction_status(
            transaction.status, transaction.paid_at, transaction.due_date, reference
        )
        vendedor = client.vendedor if client else None

        return {
            'id': str(transaction.id),
            'description': transaction.description,
            'client': client.company if client else 'Avulso',
            'clientName': client.company if client else 'Avulso',
            'clientContactName': client.contact_name if client else None,
            'clientId': str(transaction.client_id) if transaction.client_id else None,
            'productType': product_type,
            'productTypeLabel': ProductType(product_type).label if product_type else None,
            'vendedor': vendedor.display_name if vendedor else None,
            'vendedorId': str(vendedor.id) if vendedor else None,
            'amount': float(transaction.amount),
            'amountFormatted': format_brl(transaction.amount),
            'date': transaction.date.isoformat(),
            'dateFormatted': format_date_br(transaction.date),
            'dueDate': transaction.due_date.isoformat() if transaction.due_date else None,
            'dueDateFormatted': format_date_br(transaction.due_date),
            'paidAt': transaction.paid_at.isoformat() if transaction.paid_at else None,
            'status': status,
            'statusLabel': TransactionStatus(status).label,
            'statusColor': STATUS_COLORS[status],
            'type': transaction.type,
            'category': transaction.category,
            'categoryLabel': TransactionCategory(transaction.category).label,
            'isRecurring': transaction.is_recurring,
            'subscriptionId': str(transaction.subscription_id) if transaction.subscription_id else None,
            'createdBy': transaction.created_by.display_name if transaction.created_by else 'SYSTEM',
        }

    def find_all(self, filters: Optional[Dict] = None) -> List[Dict]:
        """
        Lista lançamentos com filtros.

        Filtros aceitos: start_date, end_date, type, category, status
        (persistido), client_id, product_type, sort_by_date e
        sort_by_amount ('asc' | 'desc'). Sem ordenação explícita, data desc.
        """
        filters = filters or {}
        qs = self._queryset()

        if filters.get('start_date'):
            qs = qs.filter(date__gte=filters['start_date'])
        if filters.get('end_date'):
            qs = qs.filter(date__lte=filters['end_date'])
        if filters.get('type'):
            qs = qs.filter(type=filters['type'])
        if filters.get('category'):
            qs = qs.filter(category=filters['category'])
        if filters.get('status'):
            qs = qs.filter(status=filters['status'])
        if filters.get('client_id'):
            qs = qs.filter(client_id=filters['client_id'])
        qs = qs.filter(product_filter(filters.get('product_type')))

        ordering = []
        for field, key in (('date', 'sort_by_date'), ('amount', 'sort_by_amount')):
            direction = filters.get(key)
            if direction in ('asc', 'desc'):
                ordering.append(field if direction == 'asc' else f'-{field}')
        qs = qs.order_by(*(ordering or ['-date']))

        reference = local_today()
        return [self.format(t, reference) for t in qs]

    def get(self, transaction_id) -> FinanceTransaction:
        try:
            return self._queryset().get(id=transaction_id)
        except FinanceTransaction.DoesNotExist:
            raise NotFound('Transação não encontrada')

    def find_one(self, transaction_id) -> Dict:
        return self.format(self.get(transaction_id))

    def create(self, data: Dict, user=None) -> Dict:
        """
        Cria um lançamento.

        Raises:
            BadRequest: Assinatura recorrente sem data de vencimento
        """
        if (data.get('category') == TransactionCategory.SUBSCRIPTION
                and data.get('is_recurring') and not data.get('due_date')):
            raise BadRequest('Data de vencimento é obrigatória para assinaturas recorrentes')

        transaction = FinanceTransaction.objects.create(created_by=user, **data)
        logger.info(f'[FINANCE] Lançamento criado: {transaction.description} ({transaction.amount})')
        return self.format(self.get(transaction.id))

    def update(self, transaction_id, data: Dict) -> Dict:
        """
        Atualiza um lançamento.

        - PAID sem paid_at carimba a data atual
        - Status diferente de PAID limpa paid_at
        - Transição para PAID ou CANCELLED dispara a sincronização do cliente
        """
        transaction = self.get(transaction_id)
        old_status = transaction.status
        new_status = data.get('status')

        if new_status == TransactionStatus.PAID and not data.get('paid_at'):
            data['paid_at'] = timezone.now()
        if new_status and new_status != TransactionStatus.PAID and transaction.paid_at:
            data['paid_at'] = None

        for field, value in data.items():
            setattr(transaction, field, value)

        if (transaction.category == TransactionCategory.SUBSCRIPTION
                and transaction.is_recurring and not transaction.due_date):
            raise BadRequest('Data de vencimento é obrigatória para assinaturas recorrentes')

        transaction.save()
        logger.info(f'[FINANCE] Lançamento atualizado: {transaction.id} ({old_status} -> {transaction.status})')

        if transaction.client_id:
            if new_status == TransactionStatus.PAID and old_status != TransactionStatus.PAID:
                self.status_sync.sync_client_on_payment(transaction)
            if new_status == TransactionStatus.CANCELLED and old_status != TransactionStatus.CANCELLED:
                self.status_sync.sync_client_on_cancellation(transaction)

        return self.format(self.get(transaction.id))

    def mark_as_paid(self, transaction_id) -> Dict:
        transaction = self.get(transaction_id)
        transaction.status = TransactionStatus.PAID
        transaction.paid_at = timezone.now()
        transaction.save()

        logger.info(f'[FINANCE] Lançamento {transaction.id} marcado como pago')

        if transaction.client_id:
            self.status_sync.sync_client_on_payment(transaction)

        return self.format(self.get(transaction.id))

    def delete(self, transaction_id) -> None:
        transaction = self.get(transaction_id)
        transaction.delete()
        logger.info(f'[FINANCE] Lançamento removido: {transaction_id}')

    def client_transactions(self, client_id) -> Dict:
        """
        Extrato financeiro do cliente: totais por status calculado,
        vencimentos dos próximos 7 dias e a lista de lançamentos.
        """
        transactions = list(self._queryset().filter(client_id=client_id).order_by('-date'))
        today = local_today()
        limit = today + timedelta(days=UPCOMING_DAYS)

        totals = {
            TransactionStatus.PAID: Decimal('0'),
            TransactionStatus.PENDING: Decimal('0'),
            TransactionStatus.OVERDUE: Decimal('0'),
        }
        upcoming = []

        for t in transactions:
            status = calculate_transaction_status(t.status, t.paid_at, t.due_date, today)
            if status in totals:
                totals[status] += t.amount
            if status == TransactionStatus.PENDING and t.due_date and today <= t.due_date <= limit:
                upcoming.append({
                    'id': str(t.id),
                    'description': t.description,
                    'amount': float(t.amount),
                    'amountFormatted': format_currency(t.amount),
                    'dueDate': t.due_date.isoformat(),
                    'dueDateFormatted': format_date_br(t.due_date),
                    'daysRemaining': (t.due_date - today).days,
                })

        client = transactions[0].client if transactions else None
        paid = totals[TransactionStatus.PAID]
        pending = totals[TransactionStatus.PENDING]
        overdue = totals[TransactionStatus.OVERDUE]

        return {
            'client': {
                'id': str(client.id),
                'company': client.company,
                'productType': client.product_type,
                'vendedor': {'id': str(client.vendedor.id), 'name': client.vendedor.display_name},
            } if client else None,
            'totals': {
                'paid': float(paid),
                'paidFormatted': format_currency(paid),
                'pending': float(pending),
                'pendingFormatted': format_currency(pending),
                'overdue': float(overdue),
                'overdueFormatted': format_currency(overdue),
            },
            'upcoming': upcoming,
            'transactions': [self.format(t, today) for t in transactions],
        }

    def overdue_clients(self) -> List[Dict]:
        """
        Clientes com receitas vencidas, agrupados e ordenados pelo valor em atraso.
        """
        today = local_today()
        transactions = self._queryset().filter(
            type=TransactionType.INCOME,
            client__isnull=False,
            due_date__lt=today,
            paid_at__isnull=True,
        ).exclude(status=TransactionStatus.CANCELLED).order_by('due_date')

        grouped: Dict = {}
        for t in transactions:
            days_overdue = (today - t.due_date).days
            entry = grouped.get(t.client_id)
            if entry:
                entry['overdueAmount'] += t.amount
                entry['transactionCount'] += 1
                entry['maxDaysOverdue'] = max(entry['maxDaysOverdue'], days_overdue)
            else:
                grouped[t.client_id] = {
                    'clientId': str(t.client_id),
                    'clientName': t.client.company,
                    'productType': t.client.product_type,
                    'vendedor': t.client.vendedor.display_name if t.client.vendedor else 'N/A',
                    'overdueAmount': t.amount,
                    'transactionCount': 1,
                    'maxDaysOverdue': days_overdue,
                }

        clients = sorted(grouped.values(), key=lambda c: c['overdueAmount'], reverse=True)
        for entry in clients:
            entry['overdueAmountFormatted'] = format_currency(entry['overdueAmount'])
            entry['overdueAmount'] = float(entry['overdueAmount'])
        return clients

    def upcoming_due_dates(self, days: int = UPCOMING_DAYS) -> List[Dict]:
        """
        Receitas em aberto que vencem entre hoje e os próximos `days` dias.
        """
        today = local_today()
        transactions = self._queryset().filter(
            type=TransactionType.INCOME,
            paid_at__isnull=True,
            due_date__gte=today,
            due_date__lte=today + timedelta(days=days),
        ).exclude(status=TransactionStatus.CANCELLED).order_by('due_date')

        return [
            {
                'id': str(t.id),
                'description': t.description,
                'clientId': str(t.client_id) if t.client_id else None,
                'clientName': t.client.company if t.client else 'Avulso',
                'productType': t.client.product_type if t.client else None,
                'vendedor': t.client.vendedor.display_name if t.client else 'N/A',
                'amount': float(t.amount),
                'amountFormatted': format_currency(t.amount),
                'dueDate': t.due_date.isoformat(),
                'dueDateFormatted': format_date_br(t.due_date),
                'daysRemaining': (t.due_date - today).days,
                'category': t.category,
                'categoryLabel': TransactionCategory(t.category).label,
            }
            for t in transactions
        ]

    def extract_pdf_text(self, file_bytes: bytes) -> str:
        reader = pypdf.PdfReader(io.BytesIO(file_bytes))
        return '\n'.join(page.extract_text() or '' for page in reader.pages)

    def parse_statement(self, text: str) -> List[Dict]:
        """
        Extrai lançamentos de um texto com linhas "Data | Descrição | Valor".

        Exemplo: 15/01/2024 | Assinatura One Nexus | R$ 299,00
        """
        lines = [line.strip() for line in text.split('\n') if line.strip()]
        items = []

        for index, line in enumerate(lines):
            date_match = PDF_DATE_REGEX.search(line)
            amount_match = PDF_AMOUNT_REGEX.search(line)
            if not (date_match and amount_match):
                continue

            day, month, year = date_match.groups()
            if len(year) == 2:
                year = f'20{year}'

            amount = to_decimal(amount_match.group(1).replace('.', '').replace(',', '.'))

            description = line.replace(date_match.group(0), '').replace(amount_match.group(0), '')
            description = description.strip().replace('|', '').strip()
            if not description:
                description = f'Transação {index + 1}'
            if len(description) > DESCRIPTION_MAX_LENGTH:
                description = description[:DESCRIPTION_MAX_LENGTH - 3] + '...'

            items.append({
                'description': description,
                'amount': float(amount),
                'date': f'{year}-{month.zfill(2)}-{day.zfill(2)}',
                'type': TransactionType.INCOME.value,
                'category': TransactionCategory.SUBSCRIPTION.value,
                'status': TransactionStatus.PENDING.value,
                'isRecurring': False,
            })

        return items

    def import_pdf(self, file_bytes: bytes) -> Dict:
        """
        Extrai lançamentos de um extrato em PDF para revisão (nada é gravado).

        Raises:
            BadRequest: PDF ilegível, sem texto ou sem lançamentos reconhecíveis
        """
        try:
            text = self.extract_pdf_text(file_bytes)
        except Exception as e:
            logger.error(f'[FINANCE] Erro ao ler PDF: {str(e)}', exc_info=True)
            raise BadRequest(f'Erro ao processar PDF: {str(e)}')

        if not text.strip():
            raise BadRequest('PDF não contém texto extraível')

        items = self.parse_statement(text)
        if not items:
            raise BadRequest(
                'Não foi possível extrair transações do PDF. '
                'O PDF deve conter linhas com Data | Descrição | Valor '
                '(ex: 15/01/2024 | Assinatura | R$ 299,00)'
            )

        logger.info(f'[FINANCE] PDF importado: {len(items)} transação(ões) extraída(s)')
        return {
            'extracted': len(items),
            'transactions': items,
            'message': f'{len(items)} transação(ões) extraída(s). Revise os dados antes de salvar.',
        }
