# Generated manually: initial publication service catalogue

from django.db import migrations


SERVICES = [
    ('publicacion_basica', 10, 'Publicación básica (siempre incluida)'),
    ('destacado', 25, 'Destacar en portada'),
    ('fotografia_profesional', 15, 'Sesión de fotografía profesional'),
    ('inspeccion_mecanica', 20, 'Inspección mecánica certificada'),
    ('informe_autofact', 5, 'Informe de historial Autofact'),
]


def seed_services(apps, schema_editor):
    PublicationService = apps.get_model('credits', 'PublicationService')
    for code, credit_cost, description in SERVICES:
        PublicationService.objects.update_or_create(
            code=code,
            defaults={'credit_cost': credit_cost, 'description': description},
        )


def remove_services(apps, schema_editor):
    PublicationService = apps.get_model('credits', 'PublicationService')
    PublicationService.objects.filter(code__in=[code for code, _, _ in SERVICES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('credits', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_services, remove_services),
    ]
