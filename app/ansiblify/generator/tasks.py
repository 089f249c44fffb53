"""Task fragments rendered into each role.

Every fragment is fixed text. Fragments that depend on exported files
check for them at apply time (``is directory`` / ``fileglob`` run on the
controller), never at generation time.
"""

from collections.abc import Mapping
from types import MappingProxyType

SERVICES_TASKS = """\
---
- name: Copy custom systemd unit files
  ansible.builtin.copy:
    src: "{{ item }}"
    dest: "/etc/systemd/system/{{ item | basename }}"
    owner: root
    group: root
    mode: "0644"
  with_fileglob:
    - "{{ role_path }}/files/systemd/*.service"
  register: systemd_unit_copy

- name: Reload systemd if unit files changed
  ansible.builtin.systemd:
    daemon_reload: true
  when: systemd_unit_copy is changed

- name: Enable exported systemd services
  ansible.builtin.systemd:
    name: "{{ item | basename }}"
    enabled: true
  with_fileglob:
    - "{{ role_path }}/files/systemd/multi-user.target.wants/*.service"
"""

DOCKER_TASKS = """\
---
- name: Remove conflicting packages
  ansible.builtin.apt:
    name:
      - containerd
      - docker.io
      - docker-compose
    state: absent
  when: ansible_distribution == 'Ubuntu'

- name: Add Docker official GPG key
  ansible.builtin.apt_key:
    url: https://download.docker.com/linux/ubuntu/gpg
    state: present
  when: ansible_distribution == 'Ubuntu'

- name: Add Docker repository
  ansible.builtin.apt_repository:
    repo: "deb [arch={{ ansible_architecture }}] https://download.docker.com/linux/ubuntu {{ ansible_distribution_release }} stable"
    state: present
    update_cache: true
  when: ansible_distribution == 'Ubuntu'

- name: Install Docker CE
  ansible.builtin.apt:
    name:
      - docker-ce
      - docker-ce-cli
      - containerd.io
      - docker-buildx-plugin
      - docker-compose-plugin
    state: present
    update_cache: true
  when: ansible_distribution == 'Ubuntu'

- name: Ensure Docker Compose directory exists
  ansible.builtin.file:
    path: /opt/docker
    state: directory
    owner: root
    group: root
    mode: "0755"

- name: Deploy Docker Compose configuration
  ansible.builtin.copy:
    src: docker-compose.yml
    dest: /opt/docker/docker-compose.yml
    owner: root
    group: root
    mode: "0644"
    backup: true
  when: (role_path + '/files/docker-compose.yml') is file
"""

SYSTEM_TASKS = """\
---
- name: Copy exported system files
  ansible.builtin.copy:
    src: "{{ item }}"
    dest: "/etc/{{ item | basename }}"
    owner: root
    group: root
    mode: "0644"
    backup: true
  with_fileglob:
    - "{{ role_path }}/files/hosts"
    - "{{ role_path }}/files/fstab"

- name: Copy exported cron configuration
  ansible.builtin.copy:
    src: cron/
    dest: /etc/
    owner: root
    group: root
    mode: preserve
  when: (role_path + '/files/cron') is directory

- name: Copy exported SNMP configuration
  ansible.builtin.copy:
    src: snmp/
    dest: /etc/snmp/
    owner: root
    group: root
    mode: preserve
  when: (role_path + '/files/snmp') is directory

- name: Copy exported rsync configuration
  ansible.builtin.copy:
    src: rsync/
    dest: /etc/
    owner: root
    group: root
    mode: preserve
  when: (role_path + '/files/rsync') is directory

- name: Copy exported MOTD configuration
  ansible.builtin.copy:
    src: motd/
    dest: /etc/
    owner: root
    group: root
    mode: preserve
  when: (role_path + '/files/motd') is directory

- name: Copy exported NTP configuration
  ansible.builtin.copy:
    src: ntp/
    dest: /etc/
    owner: root
    group: root
    mode: preserve
  when: (role_path + '/files/ntp') is directory
"""

VM_TASKS = """\
---
- name: Ensure virtualization packages are installed
  ansible.builtin.apt:
    name:
      - qemu-kvm
      - libvirt-daemon-system
    state: present
    update_cache: true

- name: Get virtual machines list
  ansible.builtin.command: virsh list --all --name
  register: vm_list
  changed_when: false

- name: Ensure virtual machines are running
  community.libvirt.virt:
    name: "{{ item }}"
    state: running
  loop: "{{ vm_list.stdout_lines | select | list }}"
  when: vm_list.stdout_lines | length > 0
"""

SSH_TASKS = """\
---
- name: Get system users
  ansible.builtin.getent:
    database: passwd

- name: Process SSH configurations for users
  ansible.builtin.include_tasks: user_ssh.yml
  loop: "{{ query('ansible.builtin.fileglob', role_path + '/files/*/*') | map('dirname') | map('basename') | unique | list }}"
  loop_control:
    loop_var: username
  when: username in ansible_facts.getent_passwd
"""

SSH_USER_TASKS = """\
---
- name: Ensure .ssh directory exists for {{ username }}
  ansible.builtin.file:
    path: "{{ ansible_facts.getent_passwd[username][4] }}/.ssh"
    state: directory
    owner: "{{ username }}"
    group: "{{ ansible_facts.getent_passwd[username][2] }}"
    mode: "0700"

- name: Copy SSH files for {{ username }}
  ansible.builtin.copy:
    src: "{{ item }}"
    dest: "{{ ansible_facts.getent_passwd[username][4] }}/.ssh/{{ item | basename }}"
    owner: "{{ username }}"
    group: "{{ ansible_facts.getent_passwd[username][2] }}"
    mode: "{{ (item is match('.*[.]pub$')) | ternary('0644', '0600') }}"
  with_fileglob:
    - "{{ role_path }}/files/{{ username }}/*"
"""

USERS_TASKS = """\
---
- name: Read exported account database
  ansible.builtin.set_fact:
    exported_users: "{{ lookup('ansible.builtin.file', role_path + '/files/passwd').splitlines() | map('split', ':') | list }}"
  when: (role_path + '/files/passwd') is file

- name: Ensure regular users exist
  ansible.builtin.user:
    name: "{{ item[0] }}"
    uid: "{{ item[2] | int }}"
    home: "{{ item[5] }}"
    shell: "{{ item[6] }}"
    state: present
  loop: "{{ exported_users | default([]) }}"
  loop_control:
    label: "{{ item[0] }}"
  when:
    - item | length >= 7
    - item[2] | int >= 1000
    - item[2] | int != 65534
"""

PATHS_TASKS = """\
---
- name: Get root directories
  ansible.builtin.find:
    paths: /
    file_type: directory
    depth: 1
  register: root_dirs

- name: Filter system directories
  ansible.builtin.set_fact:
    custom_paths: "{{ root_dirs.files | map(attribute='path') | reject('match', '^/(etc|var|bin|boot|dev|lib|lib32|lib64|libx32|media|mnt|opt|proc|root|run|sbin|snap|srv|sys|tmp|usr|home|lost[+]found)$') | list }}"

- name: Ensure custom paths exist
  ansible.builtin.file:
    path: "{{ item }}"
    state: directory
    mode: "0755"
    owner: root
    group: root
  loop: "{{ custom_paths }}"
  when: custom_paths | length > 0
"""

PACKAGES_TASKS = """\
---
- name: Ensure APT packages are installed
  ansible.builtin.apt:
    name: "{{ lookup('ansible.builtin.file', role_path + '/files/apt_packages.txt').splitlines() | select | list }}"
    state: present
  when: (role_path + '/files/apt_packages.txt') is file

- name: Ensure PIP packages are installed
  ansible.builtin.pip:
    name: "{{ lookup('ansible.builtin.file', role_path + '/files/pip_packages.txt').splitlines() | select | list }}"
    state: present
  when: (role_path + '/files/pip_packages.txt') is file

- name: Ensure NPM packages are installed
  community.general.npm:
    name: "{{ item }}"
    global: true
    state: present
  loop: "{{ lookup('ansible.builtin.file', role_path + '/files/npm_packages.txt').splitlines() | select | list }}"
  when: (role_path + '/files/npm_packages.txt') is file
"""

COMMANDS_TASKS = """\
---
- name: Ensure custom commands are present
  ansible.builtin.copy:
    src: "{{ item }}"
    dest: /usr/local/bin/
    mode: "0755"
    owner: root
    group: root
  with_fileglob:
    - "{{ role_path }}/files/*"
"""

DOTFILES_TASKS = """\
---
- name: Get exported dotfile user directories
  ansible.builtin.find:
    paths: "{{ role_path }}/files"
    file_type: directory
    recurse: false
  delegate_to: localhost
  become: false
  register: dotfile_user_dirs

- name: Copy dotfiles for each user
  ansible.builtin.copy:
    src: "{{ item.path }}/"
    dest: "{{ '/root' if item.path | basename == 'root' else '/home/' + item.path | basename }}/"
    owner: "{{ item.path | basename }}"
    group: "{{ item.path | basename }}"
    mode: preserve
  loop: "{{ dotfile_user_dirs.files }}"
  loop_control:
    label: "{{ item.path | basename }}"
"""

COMPLETIONS_TASKS = """\
---
- name: Copy completions to /etc/bash_completion.d
  ansible.builtin.copy:
    src: "{{ item }}"
    dest: "/etc/bash_completion.d/{{ item | basename }}"
    owner: root
    group: root
    mode: "0644"
  with_fileglob:
    - "{{ role_path }}/files/etc_bash_completion.d/*"

- name: Copy completions to /usr/share/bash-completion/completions
  ansible.builtin.copy:
    src: "{{ item }}"
    dest: "/usr/share/bash-completion/completions/{{ item | basename }}"
    owner: root
    group: root
    mode: "0644"
  with_fileglob:
    - "{{ role_path }}/files/usr_share_bash_completion_completions/*"
"""

# Module key -> {task file name -> content}
TASK_FILES: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {
        "services": {"main.yml": SERVICES_TASKS},
        "docker": {"main.yml": DOCKER_TASKS},
        "system": {"main.yml": SYSTEM_TASKS},
        "vm": {"main.yml": VM_TASKS},
        "ssh": {"main.yml": SSH_TASKS, "user_ssh.yml": SSH_USER_TASKS},
        "users": {"main.yml": USERS_TASKS},
        "paths": {"main.yml": PATHS_TASKS},
        "packages": {"main.yml": PACKAGES_TASKS},
        "commands": {"main.yml": COMMANDS_TASKS},
        "dotfiles": {"main.yml": DOTFILES_TASKS},
        "completions": {"main.yml": COMPLETIONS_TASKS},
    }
)
