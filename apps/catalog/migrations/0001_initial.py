import django.db.models.deletion
import django.utils.timezone
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='App',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('slug', models.SlugField(max_length=100, unique=True)),
                ('short_desc', models.CharField(max_length=300)),
                ('long_desc', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('PUBLISHED', 'Published'), ('ARCHIVED', 'Archived')], db_index=True, default='DRAFT', max_length=20)),
                ('visibility', models.CharField(choices=[('PUBLIC', 'Public'), ('PRIVATE', 'Private'), ('UNLISTED', 'Unlisted')], db_index=True, default='PUBLIC', max_length=20)),
                ('release_date', models.DateTimeField(blank=True, null=True)),
                ('platforms', models.JSONField(blank=True, default=list)),
                ('languages', models.JSONField(blank=True, default=list)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('organization_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('created_by_id', models.UUIDField(db_index=True)),
                ('website', models.URLField(blank=True, max_length=500)),
                ('repository', models.URLField(blank=True, max_length=500)),
                ('demo_url', models.URLField(blank=True, max_length=500)),
                ('download_url', models.URLField(blank=True, max_length=500)),
                ('app_store_url', models.URLField(blank=True, max_length=500)),
                ('play_store_url', models.URLField(blank=True, max_length=500)),
                ('view_count', models.PositiveIntegerField(default=0)),
                ('like_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AppVersion',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('version', models.CharField(max_length=50)),
                ('changelog', models.TextField(blank=True)),
                ('released_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('released_by_id', models.UUIDField()),
                ('is_latest', models.BooleanField(default=False)),
                ('download_url', models.URLField(blank=True, max_length=500)),
                ('release_notes', models.TextField(blank=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('app', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='versions', to='catalog.app')),
            ],
            options={
                'ordering': ['-released_at'],
                'unique_together': {('app', 'version')},
            },
        ),
        migrations.CreateModel(
            name='AppLike',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('user_id', models.UUIDField(db_index=True)),
                ('reaction', models.CharField(default='like', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('app', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='likes', to='catalog.app')),
            ],
            options={
                'unique_together': {('app', 'user_id')},
            },
        ),
        migrations.CreateModel(
            name='AppView',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('user_id', models.UUIDField(db_index=True)),
                ('viewed_at', models.DateTimeField(auto_now_add=True)),
                ('app', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='views', to='catalog.app')),
            ],
            options={
                'unique_together': {('app', 'user_id')},
            },
        ),
    ]
