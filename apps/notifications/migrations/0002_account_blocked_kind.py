from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('notifications', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='notification',
            name='kind',
            field=models.CharField(choices=[('bid_received', 'Bid Received'), ('auction_approved', 'Auction Approved'), ('auction_won', 'Auction Won'), ('auction_sold', 'Auction Sold'), ('auction_reserve_not_met', 'Reserve Not Met'), ('auction_no_offers', 'No Offers'), ('purchase_confirmed', 'Purchase Confirmed'), ('penalty_applied', 'Penalty Applied'), ('credits_added', 'Credits Added'), ('account_blocked', 'Account Blocked')], db_index=True, max_length=40),
        ),
    ]
