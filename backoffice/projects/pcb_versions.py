"""
PCB design file versioning: upload with automatic version numbers, version
comparison and backups
"""
import hashlib
import logging
import os
import re

from django.core.files.base import ContentFile
from django.utils import timezone
from django.utils.timesince import timesince

from .models import ProjectPcbFile, format_bytes

logger = logging.getLogger(__name__)

FOOTPRINT_PATTERN = re.compile(r'\((?:module|footprint)\s+')
NET_PATTERN = re.compile(r'\(net\s+\d+')
LAYER_PATTERN = re.compile(r'\(\d+\s+([^)]+)\)')


def sha256_of(uploaded_file):
    digest = hashlib.sha256()
    for chunk in uploaded_file.chunks():
        digest.update(chunk)
    uploaded_file.seek(0)
    return digest.hexdigest()


def count_footprints(content):
    return len(FOOTPRINT_PATTERN.findall(content))


def count_nets(content):
    return len(NET_PATTERN.findall(content))


def extract_layers(content):
    return sorted(set(match.strip() for match in LAYER_PATTERN.findall(content)))


class PcbVersionControlService:

    def versioned_file_name(self, project, original_name, file_type, version):
        base, extension = os.path.splitext(original_name)
        return f"{project.code}_{file_type}_v{version}_{base}{extension}"

    def upload_pcb_file(self, project, uploaded_file, file_type, description=None, user=None,
                        change_type='minor'):
        pcb_file = ProjectPcbFile(
            project=project,
            file_type=file_type,
            description=description or '',
            change_type=change_type,
            uploaded_by=user,
        )
        return self.store_upload(pcb_file, uploaded_file)

    def store_upload(self, pcb_file, uploaded_file):
        """Number, hash and store an uploaded file on an unsaved record, then save it"""
        project = pcb_file.project
        pcb_file.version = ProjectPcbFile.next_version(project, pcb_file.file_type)
        pcb_file.file_name = uploaded_file.name
        pcb_file.file_size = uploaded_file.size
        pcb_file.file_hash = sha256_of(uploaded_file)

        stored_name = self.versioned_file_name(project, uploaded_file.name, pcb_file.file_type, pcb_file.version)
        pcb_file.file.save(stored_name, uploaded_file, save=False)
        pcb_file.folder_path = os.path.dirname(pcb_file.file.name)
        pcb_file.save()

        logger.info(f"Uploaded PCB file {stored_name} (v{pcb_file.version}) for project {project.code}")
        return pcb_file

    @staticmethod
    def file_info(pcb_file):
        return {
            'id': pcb_file.id,
            'name': pcb_file.file_name,
            'version': pcb_file.version,
            'type': pcb_file.file_type,
            'size': pcb_file.file_size,
            'size_human': format_bytes(pcb_file.file_size),
            'hash': pcb_file.file_hash,
            'created_at': pcb_file.created_at,
            'uploaded_by': pcb_file.uploaded_by.get_username() if pcb_file.uploaded_by_id else 'Unknown',
            'description': pcb_file.description,
        }

    def compare_versions(self, older, newer):
        comparison = {
            'files': {
                'file1': self.file_info(older),
                'file2': self.file_info(newer),
            },
            'differences': [],
            'similarity_score': 0.0,
        }

        if older.file_hash and older.file_hash == newer.file_hash:
            comparison['similarity_score'] = 1.0
            comparison['differences'].append('Files are identical')
            return comparison

        size_diff = abs(older.file_size - newer.file_size)
        comparison['differences'].append({
            'type': 'file_size',
            'old_size': older.file_size,
            'new_size': newer.file_size,
            'change_bytes': newer.file_size - older.file_size,
            'change_percentage': (size_diff / older.file_size * 100) if older.file_size else 0,
        })
        comparison['differences'].append({
            'type': 'version',
            'old_version': older.version,
            'new_version': newer.version,
            'version_increment': newer.version - older.version,
        })
        earlier, later = sorted([older.created_at, newer.created_at])
        comparison['differences'].append({
            'type': 'time',
            'time_difference': timesince(earlier, later),
            'days_difference': (later - earlier).days,
        })

        if older.file_type == newer.file_type:
            comparison['differences'].extend(self.type_specific_differences(older, newer))

        max_size = max(older.file_size, newer.file_size)
        if max_size > 0:
            comparison['similarity_score'] = 1 - size_diff / max_size

        return comparison

    def type_specific_differences(self, older, newer):
        if older.file_type == 'kicad_pcb':
            return self.compare_kicad_boards(older, newer)
        if older.file_type == 'altium':
            return [{'type': 'altium_comparison',
                     'message': 'Altium files are binary; only size and version are compared'}]
        if older.file_type == 'gerber':
            return [{'type': 'gerber_comparison',
                     'message': 'Gerber comparison needs a dedicated parser; only size and version are compared'}]
        return [{'type': 'generic',
                 'message': 'Specific analysis is not available for this file type'}]

    def compare_kicad_boards(self, older, newer):
        try:
            content1 = self.read_text(older)
            content2 = self.read_text(newer)
        except (OSError, ValueError) as e:
            logger.warning(f"KiCad comparison skipped for {older} / {newer}: {str(e)}")
            return [{'type': 'error', 'message': f"Could not perform detailed KiCad comparison: {str(e)}"}]

        differences = []
        footprints1, footprints2 = count_footprints(content1), count_footprints(content2)
        if footprints1 != footprints2:
            differences.append({
                'type': 'component_count',
                'old_count': footprints1,
                'new_count': footprints2,
                'change': footprints2 - footprints1,
            })

        layers1, layers2 = extract_layers(content1), extract_layers(content2)
        if layers1 != layers2:
            differences.append({
                'type': 'layer_changes',
                'old_layers': layers1,
                'new_layers': layers2,
            })

        nets1, nets2 = count_nets(content1), count_nets(content2)
        if nets1 != nets2:
            differences.append({
                'type': 'net_count',
                'old_nets': nets1,
                'new_nets': nets2,
                'change': nets2 - nets1,
            })
        return differences

    @staticmethod
    def read_text(pcb_file):
        with pcb_file.file.open('rb') as handle:
            return handle.read().decode('utf-8', errors='ignore')

    def get_version_history(self, project, file_type=None):
        files = ProjectPcbFile.objects.filter(project=project).select_related('uploaded_by').order_by('-version')
        if file_type:
            files = files.filter(file_type=file_type)

        return [
            {
                'id': pcb_file.id,
                'version': pcb_file.version,
                'file_name': pcb_file.file_name,
                'file_type': pcb_file.file_type,
                'size': format_bytes(pcb_file.file_size),
                'uploaded_at': pcb_file.created_at,
                'uploaded_by': pcb_file.uploaded_by.get_username() if pcb_file.uploaded_by_id else 'Unknown',
                'description': pcb_file.description,
                'is_backup': pcb_file.is_backup,
                'download_url': pcb_file.file.url if pcb_file.file else None,
            }
            for pcb_file in files
        ]

    def create_backup(self, pcb_file):
        """Copy the stored file under a timestamped name and record it; returns the backup row or None"""
        stem, extension = os.path.splitext(os.path.basename(pcb_file.file.name))
        timestamp = timezone.now().strftime('%Y-%m-%d_%H-%M-%S')
        backup_name = f"{stem}_v{pcb_file.version}_backup_{timestamp}{extension}"

        try:
            with pcb_file.file.open('rb') as handle:
                content = handle.read()
        except OSError as e:
            logger.error(f"PCB file backup failed for {pcb_file.file.name}: {str(e)}")
            return None

        backup = ProjectPcbFile(
            project=pcb_file.project,
            file_name=pcb_file.file_name,
            file_type=pcb_file.file_type,
            version=pcb_file.version,
            file_size=len(content),
            file_hash=hashlib.sha256(content).hexdigest(),
            description=f"Backup of version {pcb_file.version}",
            metadata={'source_file_id': pcb_file.id},
            is_backup=True,
            change_type='backup',
            uploaded_by=pcb_file.uploaded_by,
        )
        backup.file.save(backup_name, ContentFile(content), save=False)
        backup.folder_path = os.path.dirname(backup.file.name)
        backup.save()
        logger.info(f"Created backup {backup.file.name}")
        return backup
