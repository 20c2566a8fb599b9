import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PassengerRideRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('origin', models.CharField(max_length=120)),
                ('destination', models.CharField(max_length=120)),
                ('departure_date', models.DateField()),
                ('flexible_time', models.CharField(default='flexible', max_length=60)),
                ('seats_needed', models.PositiveIntegerField(default=1)),
                ('notes', models.TextField(blank=True, null=True)),
                ('willing_to_split_fuel', models.BooleanField(default=False)),
                ('status', models.CharField(choices=[('open', 'Open'), ('pending-passenger-approval', 'Pending Passenger Approval'), ('fulfilled', 'Fulfilled'), ('cancelled', 'Cancelled')], default='open', max_length=30)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('fulfilled_by_driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='fulfilled_standing_requests', to='accounts.profile')),
                ('passenger', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='standing_requests', to='accounts.profile')),
            ],
            options={
                'db_table': 'passenger_ride_requests',
                'ordering': ['departure_date', 'created_at'],
                'constraints': [models.CheckConstraint(condition=models.Q(('seats_needed__gte', 1)), name='standing_request_seats_needed_positive')],
            },
        ),
    ]
