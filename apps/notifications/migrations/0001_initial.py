# Generated manually for the notifications inbox

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
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('message', models.TextField()),
                ('kind', models.CharField(choices=[('bid_received', 'Bid Received'), ('auction_approved', 'Auction Approved'), ('auction_won', 'Auction Won'), ('auction_sold', 'Auction Sold'), ('auction_reserve_not_met', 'Reserve Not Met'), ('auction_no_offers', 'No Offers'), ('purchase_confirmed', 'Purchase Confirmed'), ('penalty_applied', 'Penalty Applied'), ('credits_added', 'Credits Added')], db_index=True, max_length=40)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'notifications',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['user', 'is_read'], name='notif_user_read_idx')],
            },
        ),
    ]
