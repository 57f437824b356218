from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AnnualCopayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('patient_id', models.CharField(help_text='Patient cedula', max_length=32)),
                ('year', models.PositiveSmallIntegerField()),
                ('amount', models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'indexes': [models.Index(fields=['year', 'patient_id'], name='billing_ann_year_5c1f0e_idx')],
                'constraints': [models.UniqueConstraint(fields=('patient_id', 'year'), name='uniq_copayment_patient_year')],
            },
        ),
        migrations.CreateModel(
            name='InvoiceRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('invoice_number', models.CharField(max_length=64, unique=True)),
                ('patient_id', models.CharField(db_index=True, max_length=32)),
                ('patient_name', models.CharField(blank=True, max_length=255)),
                ('insurance_company', models.CharField(blank=True, max_length=255)),
                ('policy_number', models.CharField(blank=True, max_length=64)),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('copayment_amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('insurance_coverage', models.DecimalField(decimal_places=2, max_digits=14)),
                ('patient_responsibility', models.DecimalField(decimal_places=2, max_digits=14)),
                ('billing_date', models.DateTimeField()),
                ('due_date', models.DateTimeField()),
                ('status', models.CharField(choices=[('pending', 'pending'), ('paid', 'paid'), ('overdue', 'overdue'), ('cancelled', 'cancelled')], db_index=True, default='pending', max_length=16)),
                ('year', models.PositiveSmallIntegerField()),
                ('notes', models.CharField(blank=True, max_length=500)),
                ('order_summaries', models.JSONField(blank=True, default=list)),
                ('extra', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['patient_id', 'billing_date'], name='billing_inv_patient_8a2d41_idx'),
                    models.Index(fields=['patient_id', 'year'], name='billing_inv_patient_3b7e90_idx'),
                ],
            },
        ),
    ]
