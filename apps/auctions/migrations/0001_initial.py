# Generated manually for auctions and bids

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Auction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('vehicle_id', models.UUIDField(db_index=True)),
                ('start_price', models.PositiveBigIntegerField()),
                ('reserve_price', models.PositiveBigIntegerField()),
                ('min_increment', models.PositiveBigIntegerField()),
                ('duration_days', models.PositiveSmallIntegerField(default=7)),
                ('start_date', models.DateTimeField(blank=True, null=True)),
                ('end_date', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending_approval', 'Pending Approval'), ('active', 'Active'), ('paused', 'Paused'), ('finished', 'Finished')], default='draft', max_length=20)),
                ('is_approved', models.BooleanField(default=False)),
                ('winning_bid', models.PositiveBigIntegerField(blank=True, null=True)),
                ('finalized_at', models.DateTimeField(blank=True, null=True)),
                ('services', models.JSONField(blank=True, default=list)),
                ('publication_credits', models.PositiveIntegerField(default=0)),
                ('is_highlighted', models.BooleanField(default=False)),
                ('purchase_confirmed', models.BooleanField(default=False)),
                ('penalized', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='auctions', to=settings.AUTH_USER_MODEL)),
                ('winner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='won_auctions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'auctions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'end_date'], name='auction_status_end_idx'),
                    models.Index(fields=['seller', '-created_at'], name='auction_seller_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('winner__isnull', True), ('winning_bid__isnull', True)),
                            models.Q(('winner__isnull', False), ('winning_bid__isnull', False)),
                            _connector='OR',
                        ),
                        name='auction_winner_and_bid_together',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Bid',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.PositiveBigIntegerField()),
                ('hold_amount', models.PositiveBigIntegerField()),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('auction', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bids', to='auctions.auction')),
                ('bidder', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bids', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'bids',
                'ordering': ['-amount', 'created_at'],
                'indexes': [
                    models.Index(fields=['auction', '-amount', 'created_at'], name='bid_auction_leader_idx'),
                    models.Index(fields=['bidder', '-created_at'], name='bid_bidder_idx'),
                ],
            },
        ),
    ]
