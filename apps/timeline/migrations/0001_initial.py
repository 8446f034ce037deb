import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='TimelineEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('app_id', models.UUIDField()),
                ('created_by_id', models.UUIDField(db_index=True)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('type', models.CharField(choices=[('RELEASE', 'Release'), ('UPDATE', 'Update'), ('MILESTONE', 'Milestone'), ('ANNOUNCEMENT', 'Announcement'), ('FEATURE', 'Feature'), ('BUGFIX', 'Bug fix')], default='ANNOUNCEMENT', max_length=20)),
                ('date', models.DateTimeField(db_index=True)),
                ('is_public', models.BooleanField(db_index=True, default=True)),
                ('version', models.CharField(blank=True, max_length=50)),
                ('url', models.URLField(blank=True, max_length=500)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-date'],
                'indexes': [
                    models.Index(fields=['app_id', '-date'], name='timeline_app_date_idx'),
                    models.Index(fields=['app_id', 'type'], name='timeline_app_type_idx'),
                ],
            },
        ),
    ]
