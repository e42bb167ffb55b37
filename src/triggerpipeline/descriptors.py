# descriptors.py
from __future__ import annotations

from xml.sax.saxutils import escape

from .jenkins.schemas import FOLDER_CLASS
from .model import PipelineDescriptor


def pipeline_descriptor(git_url: str, branch: str, jenkinsfile: str = "Jenkinsfile") -> PipelineDescriptor:
    if not git_url:
        raise ValueError("a git URL is required to build a pipeline descriptor")
    if not branch:
        raise ValueError("a branch is required to build a pipeline descriptor")
    return PipelineDescriptor(git_url=git_url, branch=branch, jenkinsfile=jenkinsfile or "Jenkinsfile")


def render_folder(name: str, job_url: str) -> str:
    """Render the config.xml of a plain folder."""
    return f"""<?xml version='1.1' encoding='UTF-8'?>
<{FOLDER_CLASS} plugin="cloudbees-folder">
  <actions/>
  <description>{escape(f"Folder for {job_url}")}</description>
  <displayName>{escape(name)}</displayName>
  <properties/>
  <folderViews class="com.cloudbees.hudson.plugins.folder.views.DefaultFolderViewHolder">
    <views>
      <hudson.model.AllView>
        <owner class="{FOLDER_CLASS}" reference="../../../.."/>
        <name>All</name>
        <filterExecutors>false</filterExecutors>
        <filterQueue>false</filterQueue>
        <properties class="hudson.model.View$PropertyList"/>
      </hudson.model.AllView>
    </views>
    <tabBar class="hudson.views.DefaultViewsTabBar"/>
  </folderViews>
  <healthMetrics/>
  <icon class="com.cloudbees.hudson.plugins.folder.icons.StockFolderIcon"/>
</{FOLDER_CLASS}>
"""


def render_pipeline(descriptor: PipelineDescriptor) -> str:
    """Render the config.xml of a pipeline job that runs `jenkinsfile` from git."""
    branch = descriptor.branch
    # "feature/x" would otherwise be read as remote "feature", branch "x"
    if not branch.startswith(("*/", "refs/")):
        branch = f"*/{branch}"
    return f"""<?xml version='1.1' encoding='UTF-8'?>
<flow-definition plugin="workflow-job">
  <actions/>
  <description></description>
  <keepDependencies>false</keepDependencies>
  <properties/>
  <definition class="org.jenkinsci.plugins.workflow.cps.CpsScmFlowDefinition" plugin="workflow-cps">
    <scm class="hudson.plugins.git.GitSCM" plugin="git">
      <configVersion>2</configVersion>
      <userRemoteConfigs>
        <hudson.plugins.git.UserRemoteConfig>
          <url>{escape(descriptor.git_url)}</url>
        </hudson.plugins.git.UserRemoteConfig>
      </userRemoteConfigs>
      <branches>
        <hudson.plugins.git.BranchSpec>
          <name>{escape(branch)}</name>
        </hudson.plugins.git.BranchSpec>
      </branches>
      <doGenerateSubmoduleConfigurations>false</doGenerateSubmoduleConfigurations>
      <submoduleCfg class="list"/>
      <extensions/>
    </scm>
    <scriptPath>{escape(descriptor.jenkinsfile)}</scriptPath>
    <lightweight>true</lightweight>
  </definition>
  <triggers/>
  <disabled>false</disabled>
</flow-definition>
"""
