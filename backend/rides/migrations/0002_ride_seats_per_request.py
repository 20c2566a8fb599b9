from django.db import migrations, models


def copy_party_sizes(apps, schema_editor):
    Ride = apps.get_model('rides', 'Ride')
    for ride in Ride.objects.filter(fulfilled_from_request__isnull=False).select_related('fulfilled_from_request'):
        ride.seats_per_request = ride.fulfilled_from_request.seats_needed
        ride.save(update_fields=['seats_per_request'])


class Migration(migrations.Migration):

    dependencies = [
        ('rides', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='ride',
            name='seats_per_request',
            field=models.PositiveIntegerField(default=1),
        ),
        migrations.RunPython(copy_party_sizes, migrations.RunPython.noop),
        migrations.AddConstraint(
            model_name='ride',
            constraint=models.CheckConstraint(condition=models.Q(('seats_per_request__gte', 1)), name='ride_seats_per_request_positive'),
        ),
    ]
