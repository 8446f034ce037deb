import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Media',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('app_id', models.UUIDField(db_index=True)),
                ('organization_id', models.UUIDField(blank=True, null=True)),
                ('user_id', models.UUIDField(blank=True, null=True)),
                ('type', models.CharField(choices=[('LOGO', 'Logo'), ('SCREENSHOT', 'Screenshot'), ('COVER', 'Cover'), ('ICON', 'Icon'), ('VIDEO', 'Video'), ('DOCUMENT', 'Document')], db_index=True, max_length=20)),
                ('url', models.URLField(max_length=1000)),
                ('filename', models.CharField(max_length=500)),
                ('original_name', models.CharField(blank=True, max_length=255)),
                ('mime_type', models.CharField(max_length=100)),
                ('size', models.PositiveIntegerField(default=0)),
                ('width', models.PositiveIntegerField(blank=True, null=True)),
                ('height', models.PositiveIntegerField(blank=True, null=True)),
                ('order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('meta', models.JSONField(blank=True, default=dict)),
                ('uploaded_by_id', models.UUIDField()),
                ('created_by_id', models.UUIDField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['order', 'created_at'],
                'verbose_name_plural': 'media',
            },
        ),
    ]
