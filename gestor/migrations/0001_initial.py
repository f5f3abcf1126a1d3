# Migration inicial do Gestor Nexus

import uuid
from decimal import Decimal

import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='UUID do usuário', primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(db_index=True, help_text='Login do usuário', max_length=254, unique=True, verbose_name='Email')),
                ('name', models.CharField(blank=True, default='', help_text='Nome de exibição do usuário', max_length=255, verbose_name='Nome')),
                ('role', models.CharField(choices=[('SUPERADMIN', 'Super Administrador'), ('ADMINISTRATIVO', 'Administrativo'), ('GESTOR', 'Gestor'), ('VENDEDOR', 'Vendedor'), ('DESENVOLVEDOR', 'Desenvolvedor')], default='VENDEDOR', help_text='Define o escopo de acesso aos dados', max_length=20, verbose_name='Role')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Data de Atualização')),
                ('gestor', models.ForeignKey(blank=True, help_text='Gestor responsável pela equipe deste usuário', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='vendedores', to=settings.AUTH_USER_MODEL, verbose_name='Gestor')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'Usuário',
                'verbose_name_plural': 'Usuários',
                'ordering': ['email'],
                'indexes': [
                    models.Index(fields=['role'], name='gestor_user_role_idx'),
                    models.Index(fields=['gestor'], name='gestor_user_gestor_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UserPermission',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('module', models.CharField(choices=[('CLIENTS_ONE_NEXUS', 'Clientes One Nexus'), ('CLIENTS_LOCADORAS', 'Clientes NexLoc')], max_length=30, verbose_name='Módulo')),
                ('can_view', models.BooleanField(default=True, verbose_name='Pode visualizar')),
                ('can_create', models.BooleanField(default=True, verbose_name='Pode criar')),
                ('can_edit', models.BooleanField(default=True, verbose_name='Pode editar')),
                ('can_delete', models.BooleanField(default=False, verbose_name='Pode excluir')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='module_permissions', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Permissão de Módulo',
                'verbose_name_plural': 'Permissões de Módulo',
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'module'), name='unique_user_module_permission'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Plan',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('code', models.CharField(help_text='Código único do plano (ex: ONE_PRO)', max_length=50, unique=True, verbose_name='Código')),
                ('name', models.CharField(max_length=120, verbose_name='Nome')),
                ('product', models.CharField(choices=[('ONE_NEXUS', 'One Nexus'), ('LOCADORAS', 'Locadoras')], max_length=20, verbose_name='Produto')),
                ('price_monthly', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Preço Mensal')),
                ('price_annual', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Preço Anual')),
                ('setup_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Taxa de Implantação')),
                ('included_modules', models.JSONField(blank=True, default=list, verbose_name='Módulos Incluídos')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
                ('sort_order', models.PositiveIntegerField(default=0, verbose_name='Ordem')),
            ],
            options={
                'verbose_name': 'Plano',
                'verbose_name_plural': 'Planos',
                'ordering': ['sort_order', 'price_monthly'],
                'indexes': [
                    models.Index(fields=['product', 'is_active'], name='gestor_plan_prod_active_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FunnelStage',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Nome')),
                ('order', models.PositiveIntegerField(default=0, verbose_name='Ordem')),
                ('color', models.CharField(default='#6B7280', help_text='Cor hexadecimal exibida no kanban', max_length=20, verbose_name='Cor')),
                ('is_default', models.BooleanField(default=False, verbose_name='Estágio Padrão')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
            ],
            options={
                'verbose_name': 'Estágio do Funil',
                'verbose_name_plural': 'Estágios do Funil',
                'ordering': ['order'],
            },
        ),
        migrations.CreateModel(
            name='LeadOrigin',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Nome')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
            ],
            options={
                'verbose_name': 'Origem de Lead',
                'verbose_name_plural': 'Origens de Lead',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Lead',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('name', models.CharField(max_length=255, verbose_name='Nome do Contato')),
                ('email', models.EmailField(blank=True, default='', max_length=254, verbose_name='Email')),
                ('phone', models.CharField(blank=True, default='', max_length=30, verbose_name='Telefone')),
                ('company_name', models.CharField(blank=True, default='', max_length=255, verbose_name='Empresa')),
                ('cpf_cnpj', models.CharField(blank=True, db_index=True, default='', max_length=20, verbose_name='CPF/CNPJ')),
                ('role', models.CharField(blank=True, default='', max_length=100, verbose_name='Cargo')),
                ('city', models.CharField(blank=True, default='', max_length=120, verbose_name='Cidade')),
                ('status', models.CharField(choices=[('ABERTO', 'Aberto'), ('GANHO', 'Ganho'), ('PERDIDO', 'Perdido')], default='ABERTO', max_length=10, verbose_name='Status')),
                ('interest_product', models.CharField(choices=[('ONE_NEXUS', 'One Nexus'), ('LOCADORAS', 'Locadoras')], default='ONE_NEXUS', max_length=20, verbose_name='Produto de Interesse')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('score', models.PositiveSmallIntegerField(default=0, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)], verbose_name='Lead Score')),
                ('ai_score_factors', models.JSONField(blank=True, null=True, verbose_name='Fatores do Score')),
                ('ai_score_updated_at', models.DateTimeField(blank=True, null=True, verbose_name='Score atualizado em')),
                ('converted_at', models.DateTimeField(blank=True, null=True, verbose_name='Convertido em')),
                ('interest_plan', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='interested_leads', to='gestor.plan', verbose_name='Plano de Interesse')),
                ('origin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='leads', to='gestor.leadorigin', verbose_name='Origem')),
                ('stage', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='leads', to='gestor.funnelstage', verbose_name='Estágio')),
                ('vendedor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='leads', to=settings.AUTH_USER_MODEL, verbose_name='Vendedor')),
            ],
            options={
                'verbose_name': 'Lead',
                'verbose_name_plural': 'Leads',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'interest_product'], name='gestor_lead_status_prod_idx'),
                    models.Index(fields=['vendedor', '-created_at'], name='gestor_lead_vend_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LeadInteraction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('type', models.CharField(default='NOTE', max_length=30, verbose_name='Tipo')),
                ('title', models.CharField(default='Interação', max_length=150, verbose_name='Título')),
                ('content', models.TextField(verbose_name='Conteúdo')),
                ('lead', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='interactions', to='gestor.lead', verbose_name='Lead')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lead_interactions', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Interação',
                'verbose_name_plural': 'Interações',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('company', models.CharField(max_length=255, verbose_name='Empresa')),
                ('contact_name', models.CharField(max_length=255, verbose_name='Contato')),
                ('email', models.EmailField(max_length=254, verbose_name='Email')),
                ('phone', models.CharField(blank=True, default='', max_length=30, verbose_name='Telefone')),
                ('cpf_cnpj', models.CharField(max_length=20, unique=True, verbose_name='CPF/CNPJ')),
                ('role', models.CharField(blank=True, default='', max_length=100, verbose_name='Cargo do Contato')),
                ('product_type', models.CharField(choices=[('ONE_NEXUS', 'One Nexus'), ('LOCADORAS', 'Locadoras')], max_length=20, verbose_name='Produto')),
                ('status', models.CharField(choices=[('EM_TRIAL', 'Em Trial'), ('ATIVO', 'Ativo'), ('INADIMPLENTE', 'Inadimplente'), ('BLOQUEADO', 'Bloqueado'), ('CANCELADO', 'Cancelado')], db_index=True, default='EM_TRIAL', max_length=15, verbose_name='Status')),
                ('billing_cycle', models.CharField(choices=[('MONTHLY', 'Mensal'), ('QUARTERLY', 'Trimestral'), ('SEMIANNUAL', 'Semestral'), ('ANNUAL', 'Anual')], default='MONTHLY', max_length=12, verbose_name='Ciclo de Cobrança')),
                ('deal_summary', models.TextField(blank=True, default='', verbose_name='Resumo da Negociação')),
                ('number_of_users', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)], verbose_name='Quantidade de Usuários')),
                ('closed_at', models.DateField(blank=True, null=True, verbose_name='Data de Fechamento')),
                ('first_payment_date', models.DateField(blank=True, null=True, verbose_name='Data do Primeiro Pagamento')),
                ('implementation_notes', models.TextField(blank=True, default='', verbose_name='Notas de Implantação')),
                ('converted_from_lead', models.BooleanField(default=False, verbose_name='Convertido de Lead')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('lead', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clients', to='gestor.lead', verbose_name='Lead de Origem')),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='clients', to='gestor.plan', verbose_name='Plano')),
                ('vendedor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='clients', to=settings.AUTH_USER_MODEL, verbose_name='Vendedor')),
            ],
            options={
                'verbose_name': 'Cliente',
                'verbose_name_plural': 'Clientes',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'product_type'], name='gestor_client_status_prod_idx'),
                    models.Index(fields=['vendedor', 'status'], name='gestor_client_vend_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Subscription',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('billing_cycle', models.CharField(choices=[('MONTHLY', 'Mensal'), ('QUARTERLY', 'Trimestral'), ('SEMIANNUAL', 'Semestral'), ('ANNUAL', 'Anual')], default='MONTHLY', max_length=12, verbose_name='Ciclo')),
                ('billing_anchor_day', models.PositiveSmallIntegerField(help_text='Dia do mês das cobranças (1 a 28)', validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(28)], verbose_name='Dia Âncora')),
                ('current_period_start', models.DateField(verbose_name='Início do Período')),
                ('current_period_end', models.DateField(verbose_name='Fim do Período')),
                ('next_billing_date', models.DateField(db_index=True, verbose_name='Próxima Cobrança')),
                ('status', models.CharField(choices=[('ACTIVE', 'Ativa'), ('TRIALING', 'Em Trial'), ('PAST_DUE', 'Em Atraso'), ('CANCELED', 'Cancelada')], db_index=True, default='ACTIVE', max_length=10, verbose_name='Status')),
                ('grace_period_days', models.PositiveSmallIntegerField(default=7, verbose_name='Dias de Carência')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Valor')),
                ('canceled_at', models.DateTimeField(blank=True, null=True, verbose_name='Cancelada em')),
                ('cancellation_reason', models.CharField(blank=True, choices=[('PLAN_CHANGE', 'Troca de Plano'), ('PAYMENT_FAILURE', 'Falta de Pagamento'), ('CUSTOMER_REQUEST', 'Solicitação do Cliente'), ('OTHER', 'Outro')], default='', max_length=20, verbose_name='Motivo do Cancelamento')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadados')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subscriptions', to='gestor.client', verbose_name='Cliente')),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='subscriptions', to='gestor.plan', verbose_name='Plano')),
            ],
            options={
                'verbose_name': 'Assinatura',
                'verbose_name_plural': 'Assinaturas',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'next_billing_date'], name='gestor_sub_status_next_idx'),
                    models.Index(fields=['client', '-created_at'], name='gestor_sub_client_created_idx'),
                ],
            },
        ),
        migrations.AddField(
            model_name='client',
            name='active_subscription',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='gestor.subscription', verbose_name='Assinatura Ativa'),
        ),
        migrations.CreateModel(
            name='FinanceTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('description', models.CharField(max_length=300, verbose_name='Descrição')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Valor')),
                ('type', models.CharField(choices=[('INCOME', 'Receita'), ('EXPENSE', 'Despesa')], default='INCOME', max_length=10, verbose_name='Tipo')),
                ('category', models.CharField(choices=[('SUBSCRIPTION', 'Assinatura'), ('SETUP', 'Setup'), ('SUPPORT', 'Suporte'), ('CONSULTING', 'Consultoria'), ('OTHER', 'Outros')], default='OTHER', max_length=15, verbose_name='Categoria')),
                ('date', models.DateField(db_index=True, verbose_name='Data')),
                ('due_date', models.DateField(blank=True, db_index=True, null=True, verbose_name='Vencimento')),
                ('status', models.CharField(choices=[('PAID', 'Pago'), ('PENDING', 'Pendente'), ('OVERDUE', 'Vencido'), ('CANCELLED', 'Cancelado')], db_index=True, default='PENDING', max_length=10, verbose_name='Status')),
                ('paid_at', models.DateTimeField(blank=True, null=True, verbose_name='Pago em')),
                ('product_type', models.CharField(blank=True, choices=[('ONE_NEXUS', 'One Nexus'), ('LOCADORAS', 'Locadoras')], default='', max_length=20, verbose_name='Produto')),
                ('is_recurring', models.BooleanField(default=False, verbose_name='Recorrente')),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='gestor.client', verbose_name='Cliente')),
                ('created_by', models.ForeignKey(blank=True, help_text='Vazio quando gerado automaticamente pelo sistema', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_transactions', to=settings.AUTH_USER_MODEL, verbose_name='Criado por')),
                ('subscription', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transactions', to='gestor.subscription', verbose_name='Assinatura')),
            ],
            options={
                'verbose_name': 'Lançamento Financeiro',
                'verbose_name_plural': 'Lançamentos Financeiros',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['type', 'status', 'is_recurring'], name='gestor_tx_type_status_idx'),
                    models.Index(fields=['client', 'status'], name='gestor_tx_client_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Valor')),
                ('due_date', models.DateField(db_index=True, verbose_name='Vencimento')),
                ('status', models.CharField(choices=[('PENDING', 'Pendente'), ('PAID', 'Pago'), ('OVERDUE', 'Vencido'), ('CANCELLED', 'Cancelado'), ('REFUNDED', 'Estornado')], db_index=True, default='PENDING', max_length=10, verbose_name='Status')),
                ('method', models.CharField(choices=[('PIX', 'PIX'), ('CARTAO', 'Cartão'), ('BOLETO', 'Boleto'), ('TRANSFERENCIA', 'Transferência')], default='PIX', max_length=15, verbose_name='Forma de Pagamento')),
                ('billing_cycle', models.CharField(blank=True, choices=[('MONTHLY', 'Mensal'), ('QUARTERLY', 'Trimestral'), ('SEMIANNUAL', 'Semestral'), ('ANNUAL', 'Anual')], default='', max_length=12, verbose_name='Ciclo')),
                ('period_start', models.DateField(blank=True, null=True, verbose_name='Início do Período')),
                ('period_end', models.DateField(blank=True, null=True, verbose_name='Fim do Período')),
                ('external_id', models.CharField(blank=True, db_index=True, default='', max_length=120, verbose_name='ID Externo')),
                ('gateway', models.CharField(choices=[('ASAAS', 'Asaas'), ('ABACATEPAY', 'AbacatePay'), ('MANUAL', 'Manual')], default='MANUAL', max_length=12, verbose_name='Gateway')),
                ('gateway_id', models.CharField(blank=True, db_index=True, default='', max_length=120, verbose_name='ID no Gateway')),
                ('gateway_data', models.JSONField(blank=True, null=True, verbose_name='Dados do Gateway')),
                ('paid_at', models.DateTimeField(blank=True, null=True, verbose_name='Pago em')),
                ('cancelled_at', models.DateTimeField(blank=True, null=True, verbose_name='Cancelado em')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='gestor.client', verbose_name='Cliente')),
                ('subscription', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments', to='gestor.subscription', verbose_name='Assinatura')),
            ],
            options={
                'verbose_name': 'Pagamento',
                'verbose_name_plural': 'Pagamentos',
                'ordering': ['-due_date'],
                'indexes': [
                    models.Index(fields=['gateway', 'gateway_id'], name='gestor_pay_gateway_idx'),
                    models.Index(fields=['client', '-due_date'], name='gestor_pay_client_due_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Tenant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('tenant_uuid', models.CharField(help_text='Identificador da instância no provisionamento', max_length=64, unique=True, verbose_name='UUID do Tenant')),
                ('system_url', models.CharField(help_text='Endereço de acesso da instância', max_length=255, verbose_name='URL do Sistema')),
                ('vps_location', models.CharField(help_text='Região/datacenter da VPS (ex: BR-SP)', max_length=50, verbose_name='Localização da VPS')),
                ('status', models.CharField(choices=[('ATIVO', 'Ativo'), ('SUSPENSO', 'Suspenso'), ('BLOQUEADO', 'Bloqueado'), ('DELETADO', 'Deletado')], db_index=True, default='ATIVO', max_length=10, verbose_name='Status')),
                ('version', models.CharField(default='1.0.0', help_text='Versão instalada (semver X.Y.Z)', max_length=20, verbose_name='Versão')),
                ('last_access_at', models.DateTimeField(blank=True, null=True, verbose_name='Último Acesso')),
                ('active_users', models.PositiveIntegerField(default=0, verbose_name='Usuários Ativos')),
                ('storage_used_mb', models.PositiveIntegerField(default=0, verbose_name='Armazenamento (MB)')),
                ('enabled_modules', models.JSONField(blank=True, default=list, verbose_name='Módulos Habilitados')),
                ('client', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='tenant', to='gestor.client', verbose_name='Cliente')),
            ],
            options={
                'verbose_name': 'Tenant',
                'verbose_name_plural': 'Tenants',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='gestor_tenant_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('action', models.CharField(db_index=True, max_length=50, verbose_name='Ação')),
                ('entity', models.CharField(db_index=True, max_length=50, verbose_name='Entidade')),
                ('entity_id', models.CharField(blank=True, db_index=True, default='', max_length=64, verbose_name='ID da Entidade')),
                ('old_data', models.JSONField(blank=True, null=True, verbose_name='Dados Anteriores')),
                ('new_data', models.JSONField(blank=True, null=True, verbose_name='Dados Novos')),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True, verbose_name='IP')),
                ('user_agent', models.CharField(blank=True, default='', max_length=500, verbose_name='User Agent')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Log de Auditoria',
                'verbose_name_plural': 'Logs de Auditoria',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['entity', 'entity_id'], name='gestor_audit_entity_idx'),
                    models.Index(fields=['user', '-created_at'], name='gestor_audit_user_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CalendarEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Identificador único (UUID) do registro', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Data e hora em que o registro foi criado', verbose_name='Data de Criação')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Data e hora da última atualização do registro', verbose_name='Data de Atualização')),
                ('title', models.CharField(max_length=200, verbose_name='Título')),
                ('description', models.TextField(blank=True, default='', verbose_name='Descrição')),
                ('type', models.CharField(choices=[('DEMO', 'Demonstração'), ('MEETING', 'Reunião'), ('CALL', 'Ligação'), ('FOLLOWUP', 'Follow-up'), ('SUPPORT', 'Suporte'), ('INTERNAL', 'Interno')], default='MEETING', max_length=10, verbose_name='Tipo')),
                ('start_at', models.DateTimeField(db_index=True, verbose_name='Início')),
                ('end_at', models.DateTimeField(verbose_name='Término')),
                ('is_all_day', models.BooleanField(default=False, verbose_name='Dia Inteiro')),
                ('attendees_count', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)], verbose_name='Participantes')),
                ('location', models.CharField(blank=True, default='', max_length=255, verbose_name='Local')),
                ('meeting_url', models.URLField(blank=True, default='', verbose_name='Link da Reunião')),
                ('reminder_minutes', models.JSONField(blank=True, default=list, verbose_name='Lembretes (minutos)')),
                ('is_recurring', models.BooleanField(default=False, verbose_name='Recorrente')),
                ('recurrence_rule', models.CharField(blank=True, default='', max_length=500, verbose_name='Regra de Recorrência')),
                ('recurrence_end', models.DateTimeField(blank=True, null=True, verbose_name='Fim da Recorrência')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Removido em')),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='calendar_events', to='gestor.client', verbose_name='Cliente')),
                ('lead', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='calendar_events', to='gestor.lead', verbose_name='Lead')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='calendar_events', to=settings.AUTH_USER_MODEL, verbose_name='Responsável')),
            ],
            options={
                'verbose_name': 'Evento',
                'verbose_name_plural': 'Eventos',
                'ordering': ['start_at'],
                'indexes': [
                    models.Index(fields=['user', 'start_at'], name='gestor_event_user_start_idx'),
                ],
            },
        ),
    ]
