import django.db.models.deletion
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='WebhookNotification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('provider', models.CharField(default='mercadopago', max_length=50)),
                ('topic', models.CharField(help_text='e.g., payment, merchant_order', max_length=50)),
                ('resource_id', models.CharField(db_index=True, max_length=255)),
                ('outcome', models.CharField(choices=[('processed', 'Processed'), ('ignored', 'Ignored'), ('unmatched', 'Unmatched'), ('failed', 'Failed')], max_length=20)),
                ('gateway_status', models.CharField(blank=True, default='', max_length=50)),
                ('payload', models.JSONField(default=dict, help_text='Query parameters and body as received')),
                ('error_message', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='webhook_notifications', to='orders.order')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['topic', 'resource_id'], name='payments_topic_resource_idx'),
                    models.Index(fields=['order', 'outcome'], name='payments_order_outcome_idx'),
                ],
            },
        ),
    ]
