# Generated migration for sync app

from django.db import migrations, models
import django.db.models.deletion
import apps.sync.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('authentication', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PendingSyncAction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action_id', models.CharField(default=apps.sync.models.generate_action_id, max_length=32, unique=True)),
                ('type', models.CharField(choices=[('create_comment', 'Create comment'), ('vote_story', 'Vote on story'), ('vote_comment', 'Vote on comment'), ('flag_comment', 'Flag comment'), ('create_story', 'Create story')], max_length=20)),
                ('data', models.JSONField(default=dict)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=10)),
                ('attempts', models.PositiveSmallIntegerField(default=0)),
                ('last_error', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sync_actions', to='authentication.user')),
            ],
            options={
                'db_table': 'pending_sync_actions',
                'ordering': ['created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='pendingsyncaction',
            index=models.Index(fields=['status', 'created_at'], name='sync_status_idx'),
        ),
        migrations.AddIndex(
            model_name='pendingsyncaction',
            index=models.Index(fields=['user', 'status'], name='sync_user_status_idx'),
        ),
    ]
