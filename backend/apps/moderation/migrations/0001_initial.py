# Generated migration for moderation app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('authentication', '0001_initial'),
        ('stories', '0001_initial'),
        ('comments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Moderation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=50)),
                ('reason', models.TextField(blank=True, default='')),
                ('is_from_suggestions', models.BooleanField(default=False)),
                ('subject_type', models.CharField(choices=[('story', 'Story'), ('comment', 'Comment'), ('user', 'User')], max_length=20)),
                ('subject_id', models.BigIntegerField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('comment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderations', to='comments.comment')),
                ('moderator', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderations', to='authentication.user')),
                ('story', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderations', to='stories.story')),
                ('target_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderations_received', to='authentication.user')),
            ],
            options={
                'db_table': 'moderations',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='moderation',
            index=models.Index(fields=['subject_type', 'subject_id'], name='moderations_subject_idx'),
        ),
        migrations.AddIndex(
            model_name='moderation',
            index=models.Index(fields=['moderator', 'created_at'], name='moderations_moderator_idx'),
        ),
    ]
