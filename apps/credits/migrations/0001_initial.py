# Generated manually for the credit ledger

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CreditAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('balance', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='credit_account', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'credit_accounts',
                'constraints': [models.CheckConstraint(condition=models.Q(('balance__gte', 0)), name='credit_account_balance_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='CreditMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('purchase', 'Purchase'), ('bid', 'Bid'), ('publication', 'Publication'), ('highlight', 'Highlight'), ('renewal', 'Renewal'), ('penalty', 'Penalty'), ('bonus', 'Bonus'), ('admin_adjustment', 'Admin Adjustment')], max_length=20)),
                ('amount', models.IntegerField()),
                ('description', models.CharField(blank=True, max_length=255)),
                ('resulting_balance', models.IntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='credits.creditaccount')),
            ],
            options={
                'db_table': 'credit_movements',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['account', '-created_at'], name='movement_account_created_idx'),
                    models.Index(fields=['kind'], name='movement_kind_idx'),
                ],
                'constraints': [models.CheckConstraint(condition=models.Q(('amount', 0), _negated=True), name='credit_movement_amount_non_zero')],
            },
        ),
        migrations.CreateModel(
            name='PublicationService',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(unique=True)),
                ('credit_cost', models.PositiveIntegerField()),
                ('description', models.CharField(blank=True, max_length=255)),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'db_table': 'publication_services',
                'ordering': ['credit_cost', 'code'],
            },
        ),
    ]
