"""
Custom Management Command para criar o SUPERADMIN do Gestor Nexus.

Uso:
    python manage.py init_admin --email admin@nexus.com --password 'SenhaForte!'

Se o usuário já existir, nada é alterado.
"""

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import OperationalError, connection, transaction

from gestor.models import User, UserRole


class Command(BaseCommand):

    help = 'Cria o usuário SUPERADMIN do Gestor Nexus.'

    def add_arguments(self, parser):
        parser.add_argument('--email', type=str, required=True, help='Email do SUPERADMIN')
        parser.add_argument('--password', type=str, required=True, help='Senha do SUPERADMIN')
        parser.add_argument('--name', type=str, default='Administrador', help='Nome de exibição')

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        password = options['password']

        try:
            self.stdout.write('Verificando conexão com o banco de dados...')
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
            self.stdout.write(self.style.SUCCESS('[OK] Conexao com banco de dados estabelecida.'))

            existing = User.objects.filter(email=email).first()
            if existing:
                self.stdout.write(self.style.WARNING(f'[AVISO] Usuario ja existe: {email}'))
                self.stdout.write(f'   - ID: {existing.id}')
                self.stdout.write(f'   - Role: {existing.get_role_display()}')
                self.stdout.write(self.style.SUCCESS('[OK] Nenhuma acao necessaria.'))
                return

            with transaction.atomic():
                user = User.objects.create_superuser(
                    email=email,
                    password=password,
                    role=UserRole.SUPERADMIN,
                    name=options['name'],
                )

            self.stdout.write(self.style.SUCCESS('[OK] SUPERADMIN criado com sucesso!'))
            self.stdout.write(f'   - Email: {user.email}')
            self.stdout.write(f'   - ID: {user.id}')

        except OperationalError as e:
            self.stdout.write(self.style.ERROR(f'[ERRO] Falha ao conectar com o banco de dados: {str(e)}'))
            raise CommandError('Falha na conexão com o banco de dados.')

        except ValidationError as e:
            self.stdout.write(self.style.ERROR(f'[ERRO] Erro de validacao: {str(e)}'))
            raise CommandError('Falha na validação do usuário.')
