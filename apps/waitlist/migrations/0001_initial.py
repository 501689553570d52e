import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='WaitlistEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('email', models.EmailField(max_length=254, unique=True, verbose_name='Email')),
                ('phone_number', models.CharField(max_length=50, verbose_name='Phone')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('business_name', models.CharField(max_length=200, verbose_name='Business name')),
                ('business_description', models.TextField(verbose_name='Business description')),
                ('business_url', models.CharField(max_length=500, verbose_name='Business website')),
                ('message', models.TextField(blank=True, verbose_name='Message')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated')),
            ],
            options={
                'verbose_name': 'Waitlist entry',
                'verbose_name_plural': 'Waitlist',
                'ordering': ['-created_at'],
            },
        ),
    ]
